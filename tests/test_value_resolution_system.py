from entity_stats.effects.active import (
    ActiveEffect,
    BaseStatValueProvider,
    GenericGear,
    create_active_effect,
    create_base_stat_provider,
    create_gear,
)
from entity_stats.events.bus import EVENT_VALUE_PROVIDER_REGISTERED, EVENT_VALUE_PROVIDER_UNREGISTERED


class _RecordingProvider:
    def __init__(self, provider_id, priority, value, purposes=("damage",)):
        self.id = provider_id
        self.name = provider_id
        self.priority = priority
        self.supported_purposes = tuple(purposes)
        self.value = value
        self.calls = 0

    def can_handle_purpose(self, purpose):
        return purpose in self.supported_purposes

    def provide_value(self, purpose, ctx):
        self.calls += 1
        return self.value

    def is_active(self, ctx):
        return True


def test_highest_priority_provider_wins_and_short_circuits(stats_world, hero):
    _bus, world = stats_world
    resolver = world.value_resolution_system
    high = _RecordingProvider("high", 10, 5.0)
    low = _RecordingProvider("low", 5, 100.0)
    resolver.register_value_provider(hero, low)
    resolver.register_value_provider(hero, high)

    result = resolver.request_value(hero, "damage")

    assert result.value == 5.0
    assert result.provider_id == "high"
    assert result.purpose == "damage"
    assert high.calls == 1
    assert low.calls == 0


def test_none_answers_fall_through(stats_world, hero):
    _bus, world = stats_world
    resolver = world.value_resolution_system
    resolver.register_value_provider(hero, _RecordingProvider("silent", 10, None))
    resolver.register_value_provider(hero, _RecordingProvider("fallback", 1, 0.0))

    result = resolver.request_value(hero, "damage")

    assert result.value == 0.0
    assert result.provider_id == "fallback"


def test_unanswered_request_returns_none(stats_world, hero):
    _bus, world = stats_world
    assert world.value_resolution_system.request_value(hero, "healing") is None


def test_gear_provider_and_effect_compete(stats_world, hero):
    _bus, world = stats_world
    gear = GenericGear("sword", "Sword", "weapon", 3, ["damage"], lambda purpose, ctx: 7.0, slot="main_hand")
    provider = BaseStatValueProvider("base", "Base", 1, ["damage"], "strength", multiplier=2.0)
    effect = create_active_effect("fury", "Fury", [], ["damage"], lambda purpose, ctx: 42.0, priority=8)
    world.gear_system.equip_gear(hero, gear)
    world.value_resolution_system.register_value_provider(hero, provider)
    world.stat_system.add_effect(hero, effect)

    result = world.value_resolution_system.request_value(hero, "damage")
    assert result.value == 42.0
    assert result.provider_id == "fury"

    world.stat_system.remove_effect(hero, "fury")
    assert world.value_resolution_system.request_value(hero, "damage").provider_id == "sword"

    world.gear_system.unequip_gear(hero, "main_hand")
    result = world.value_resolution_system.request_value(hero, "damage")
    assert result.provider_id == "base"
    assert result.value == 20.0


def test_equal_priority_prefers_gear_then_provider(stats_world, hero):
    _bus, world = stats_world
    world.value_resolution_system.register_value_provider(hero, _RecordingProvider("provider", 5, 2.0))
    world.gear_system.equip_gear(hero, create_gear("ring", "Ring", "ring", 5, ["damage"], lambda p, c: 1.0))

    assert world.value_resolution_system.request_value(hero, "damage").provider_id == "ring"


def test_effect_explicitly_inactive_for_purpose_is_skipped(stats_world, hero):
    _bus, world = stats_world

    class _Dormant(ActiveEffect):
        def is_active_for_purpose(self, purpose, ctx):
            return False

    world.stat_system.add_effect(hero, _Dormant("dormant", "Dormant", [], ["damage"], lambda p, c: 99.0, priority=50))
    world.value_resolution_system.register_value_provider(hero, _RecordingProvider("provider", 1, 3.0))

    assert world.value_resolution_system.request_value(hero, "damage").value == 3.0


def test_request_context_is_shared_and_populated(stats_world, hero, clock):
    _bus, world = stats_world
    seen = []

    def calculator(purpose, ctx):
        seen.append(ctx)
        return None

    world.value_resolution_system.register_value_provider(
        hero, BaseStatValueProvider("unused", "Unused", 0, ["other"], "strength")
    )
    world.stat_system.add_effect(hero, create_active_effect("a", "A", [], ["inspect"], calculator, priority=2))
    world.stat_system.add_effect(hero, create_active_effect("b", "B", [], ["inspect"], calculator, priority=1))

    result = world.value_resolution_system.request_value(hero, "inspect", {"target": "goblin"})

    assert result is None
    assert len(seen) == 2
    assert seen[0] is seen[1]
    ctx = seen[0]
    assert ctx.entity_id == "hero"
    assert ctx.purpose == "inspect"
    assert ctx.parameters == {"target": "goblin"}
    assert ctx.base_stats["strength"] == 10.0
    assert ctx.timestamp == clock.value
    assert [effect.id for effect in ctx.active_effects] == ["a", "b"]


def test_register_and_unregister_provider_events(stats_world, hero):
    bus, world = stats_world
    events: list[str] = []
    bus.subscribe(EVENT_VALUE_PROVIDER_REGISTERED, lambda sender, **payload: events.append("registered"))
    bus.subscribe(EVENT_VALUE_PROVIDER_UNREGISTERED, lambda sender, **payload: events.append("unregistered"))
    provider = create_base_stat_provider("base", "Base", 0, ["damage"], "strength")

    world.value_resolution_system.register_value_provider(hero, provider)
    assert world.value_resolution_system.get_value_providers(hero) == [provider]
    assert world.value_resolution_system.unregister_value_provider(hero, "base")
    assert not world.value_resolution_system.unregister_value_provider(hero, "base")

    assert events == ["registered", "unregistered"]
