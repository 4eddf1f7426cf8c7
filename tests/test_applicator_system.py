import pytest

from entity_stats.bounds.calculator import simple_bound_config
from entity_stats.components.bound_watch import BoundEventConfig
from entity_stats.effects.factory import create_additive_effect, create_set_value_effect
from entity_stats.events.bus import EVENT_BOUND_THRESHOLD_CROSSED, EVENT_STAT_CHANGED
from entity_stats.systems.applicator_system import (
    EffectApplicator,
    bound_ratio_applicator,
    bound_state_applicator,
    percentage_threshold_applicator,
    stat_threshold_applicator,
)


def test_stat_threshold_applicator_adds_effect(stats_world, hero):
    _bus, world = stats_world
    world.applicator_system.register(
        stat_threshold_applicator(
            "wounded",
            "Wounded",
            "health",
            "<",
            30,
            effects_to_add=[create_additive_effect("adrenaline", "Adrenaline", "strength", 5)],
        )
    )

    world.stat_system.set_stat(hero, "health", 50.0)
    assert not world.stat_system.has_effect(hero, "adrenaline")

    world.stat_system.set_stat(hero, "health", 20.0)
    assert world.stat_system.get_stat(hero, "strength") == 15.0


def test_percentage_threshold_applicator_uses_reference_stat(stats_world, hero):
    _bus, world = stats_world
    world.applicator_system.register(
        percentage_threshold_applicator(
            "bloodied",
            "Bloodied",
            "health",
            "<=",
            0.5,
            base_stat_type="max_health",
            effects_to_add=[create_additive_effect("rage", "Rage", "strength", 2)],
            effects_to_remove=["calm"],
        )
    )
    world.stat_system.add_effect(hero, create_additive_effect("calm", "Calm", "strength", 1))

    world.stat_system.set_stat(hero, "health", 50.0)

    assert world.stat_system.has_effect(hero, "rage")
    assert not world.stat_system.has_effect(hero, "calm")


def test_cooldown_blocks_repeat_until_elapsed(stats_world, hero, clock):
    bus, world = stats_world
    fired: list[int] = []

    def predicate(payload, ctx):
        fired.append(payload["entity"])
        return True

    world.applicator_system.register(
        EffectApplicator(
            id="pulse",
            name="Pulse",
            event_name="pulse",
            predicate=predicate,
            effects_to_remove=("shield",),
            cooldown_ms=1000,
        )
    )
    shield = create_set_value_effect("shield", "Shield", "armor", 5)

    world.stat_system.add_effect(hero, shield)
    bus.emit("pulse", entity=hero)
    assert not world.stat_system.has_effect(hero, "shield")

    world.stat_system.add_effect(hero, shield)
    clock.advance(500)
    bus.emit("pulse", entity=hero)
    assert world.stat_system.has_effect(hero, "shield")
    assert world.applicator_system.is_on_cooldown("pulse", hero)

    clock.advance(600)
    bus.emit("pulse", entity=hero)
    assert not world.stat_system.has_effect(hero, "shield")
    assert fired == [hero, hero]


def test_applicator_respects_stackability(stats_world, hero):
    _bus, world = stats_world
    world.stat_system.add_effect(hero, create_set_value_effect("pin_a", "Pin", "strength", 1))
    world.applicator_system.register(
        EffectApplicator(
            id="pinner",
            name="Pinner",
            event_name=EVENT_STAT_CHANGED,
            predicate=lambda payload, ctx: True,
            effects_to_add=(create_set_value_effect("pin_b", "Pin", "strength", 9),),
        )
    )

    world.stat_system.set_stat(hero, "health", 1.0)

    assert not world.stat_system.has_effect(hero, "pin_b")


def test_bound_state_applicator(stats_world, hero):
    _bus, world = stats_world
    world.bound_event_system.register(hero, BoundEventConfig("health", simple_bound_config(0, 100)))
    world.applicator_system.register(
        bound_state_applicator(
            "last_stand",
            "Last Stand",
            "health",
            states=["Critical"],
            effects_to_add=[create_additive_effect("last_stand_def", "Defense", "defense", 10)],
        )
    )

    world.stat_system.set_stat(hero, "health", 60.0)
    world.bound_event_system.check(hero)
    assert not world.stat_system.has_effect(hero, "last_stand_def")

    world.stat_system.set_stat(hero, "health", 10.0)
    world.bound_event_system.check(hero)
    assert world.stat_system.get_stat(hero, "defense") == 10.0


def test_bound_ratio_applicator_condition(stats_world, hero):
    _bus, world = stats_world
    world.bound_event_system.register(hero, BoundEventConfig("health", simple_bound_config(0, 100)))
    world.applicator_system.register(
        bound_ratio_applicator(
            "regen",
            "Regen",
            "health",
            condition=lambda ratio, data: data.ratio_change < 0,
            effects_to_add=[create_additive_effect("regen_effect", "Regen", "regen", 1)],
        )
    )

    world.stat_system.set_stat(hero, "health", 90.0)
    world.bound_event_system.check(hero)
    assert not world.stat_system.has_effect(hero, "regen_effect")

    world.stat_system.set_stat(hero, "health", 70.0)
    world.bound_event_system.check(hero)
    assert world.stat_system.has_effect(hero, "regen_effect")


def test_bound_ratio_applicator_rejects_other_events():
    with pytest.raises(ValueError):
        bound_ratio_applicator("x", "X", "health", event_name=EVENT_STAT_CHANGED)
    bound_ratio_applicator("x", "X", "health", event_name=EVENT_BOUND_THRESHOLD_CROSSED)


def test_register_unregister(stats_world, hero):
    bus, world = stats_world
    applicator = stat_threshold_applicator("a", "A", "health", ">", 0)

    world.applicator_system.register(applicator)
    with pytest.raises(ValueError):
        world.applicator_system.register(applicator)
    assert world.applicator_system.get_applicators_for_event(EVENT_STAT_CHANGED) == [applicator]

    assert world.applicator_system.unregister("a")
    assert not world.applicator_system.unregister("a")
    assert world.applicator_system.get_applicators() == []
    assert bus.subscriber_count(EVENT_STAT_CHANGED) == 0


def test_events_without_stat_entity_are_ignored(stats_world):
    bus, world = stats_world
    calls = []
    world.applicator_system.register(
        EffectApplicator("noop", "Noop", "ping", lambda payload, ctx: calls.append(payload) or False)
    )

    bus.emit("ping")
    bus.emit("ping", entity=12345)

    assert calls == []
