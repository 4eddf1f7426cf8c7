from __future__ import annotations

import random
from typing import Mapping

from esper import World

from entity_stats.components.stat_block import StatBlock
from entity_stats.constants import ENFORCE_STACKABILITY, STATS_CACHE_TTL_MS
from entity_stats.effects.registry import ensure_default_recipes_registered
from entity_stats.events.bus import EVENT_TICK, EventBus
from entity_stats.systems.applicator_system import ApplicatorSystem
from entity_stats.systems.bound_event_system import BoundEventSystem
from entity_stats.systems.gear_system import GearSystem
from entity_stats.systems.stat_system import StatSystem
from entity_stats.systems.value_resolution_system import ValueResolutionSystem
from entity_stats.utils.timing import Clock, resolve_clock


def create_world(
    event_bus: EventBus,
    *,
    clock: Clock | None = None,
    rng: random.Random | None = None,
    cache_ttl_ms: float = STATS_CACHE_TTL_MS,
    enforce_stackability: bool = ENFORCE_STACKABILITY,
) -> World:
    """Build a world with every stats system wired to ``event_bus``.

    Systems are reachable as world attributes (``world.stat_system`` and so
    on) and share one clock.
    """

    world = World()
    setattr(world, "random", rng or random.Random())
    clock = resolve_clock(clock)

    # Register the standard effect recipes if not already present.
    ensure_default_recipes_registered()

    stat_system = StatSystem(
        world,
        event_bus,
        clock=clock,
        cache_ttl_ms=cache_ttl_ms,
        enforce_stackability=enforce_stackability,
    )
    ValueResolutionSystem(world, event_bus, stat_system=stat_system, clock=clock)
    GearSystem(world, event_bus, stat_system=stat_system, clock=clock)
    BoundEventSystem(world, event_bus, stat_system=stat_system, clock=clock)
    ApplicatorSystem(world, event_bus, stat_system=stat_system, clock=clock)

    def _on_tick(sender, **payload):
        run_tick(world, payload.get("now"))

    event_bus.subscribe(EVENT_TICK, _on_tick)
    return world


def run_tick(world: World, now: float | None = None) -> None:
    """Advance the world one step: expire timed effects, then check bounds.

    Expiry runs first so bound events see the stats left after removal.
    """

    world.stat_system.expire_all(now)
    world.bound_event_system.check_all()


def create_stat_entity(world: World, entity_id: str, base_stats: Mapping[str, float] | None = None) -> int:
    if find_entity(world, entity_id) is not None:
        raise ValueError(f"Entity '{entity_id}' already exists")
    return world.create_entity(StatBlock(entity_id=entity_id, base=dict(base_stats or {})))


def find_entity(world: World, entity_id: str) -> int | None:
    for entity, block in world.get_component(StatBlock):
        if block.entity_id == entity_id:
            return entity
    return None
