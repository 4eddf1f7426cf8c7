from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from esper import World

from entity_stats.components.bound_watch import BoundEventData
from entity_stats.components.stat_block import StatBlock
from entity_stats.effects.applicability import resolve_comparison
from entity_stats.effects.base import Effect, EffectContext
from entity_stats.events.bus import (
    EVENT_BOUND_RATIO_CHANGED,
    EVENT_BOUND_STATE_CHANGED,
    EVENT_BOUND_THRESHOLD_CROSSED,
    EVENT_STAT_CHANGED,
    EventBus,
)
from entity_stats.systems.stat_system import StatSystem
from entity_stats.utils.timing import Clock, resolve_clock

logger = logging.getLogger(__name__)

ApplicatorPredicate = Callable[[Mapping[str, Any], EffectContext], bool]


@dataclass(frozen=True, slots=True)
class EffectApplicator:
    """Adds and removes effects when ``event_name`` fires for an entity.

    ``predicate`` receives the event payload and a context built from the
    entity's current stats. ``cooldown_ms`` is tracked per entity and only
    starts once the applicator actually changed something.
    """

    id: str
    name: str
    event_name: str
    predicate: ApplicatorPredicate
    effects_to_add: tuple[Effect, ...] = ()
    effects_to_remove: tuple[str, ...] = ()
    cooldown_ms: float = 0.0
    description: str = ""


class ApplicatorSystem:
    """Routes bus events concerning an entity to the registered applicators."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        stat_system: StatSystem | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.stat_system = stat_system or getattr(world, "stat_system")
        self.clock = resolve_clock(clock)
        self._applicators: dict[str, EffectApplicator] = {}
        self._handlers: dict[str, Callable] = {}
        self._last_fired: dict[tuple[str, int], float] = {}
        setattr(world, "applicator_system", self)

    # Public API ---------------------------------------------------------
    def register(self, applicator: EffectApplicator) -> None:
        if applicator.id in self._applicators:
            raise ValueError(f"Applicator '{applicator.id}' already registered")
        self._applicators[applicator.id] = applicator
        if applicator.event_name not in self._handlers:
            handler = self._make_event_handler(applicator.event_name)
            self._handlers[applicator.event_name] = handler
            self.event_bus.subscribe(applicator.event_name, handler)
        logger.debug("Registered applicator %s on %s", applicator.id, applicator.event_name)

    def unregister(self, applicator_id: str) -> bool:
        applicator = self._applicators.pop(applicator_id, None)
        if applicator is None:
            return False
        for key in [key for key in self._last_fired if key[0] == applicator_id]:
            del self._last_fired[key]
        if not self.get_applicators_for_event(applicator.event_name):
            handler = self._handlers.pop(applicator.event_name)
            self.event_bus.unsubscribe(applicator.event_name, handler)
        return True

    def get_applicators(self) -> list[EffectApplicator]:
        return list(self._applicators.values())

    def get_applicators_for_event(self, event_name: str) -> list[EffectApplicator]:
        return [applicator for applicator in self._applicators.values() if applicator.event_name == event_name]

    def is_on_cooldown(self, applicator_id: str, entity: int, now: float | None = None) -> bool:
        applicator = self._applicators.get(applicator_id)
        last = self._last_fired.get((applicator_id, entity))
        if applicator is None or last is None or applicator.cooldown_ms <= 0:
            return False
        if now is None:
            now = self.clock()
        return now - last < applicator.cooldown_ms

    def handle_event(self, event_name: str, entity: int, payload: Mapping[str, Any]) -> bool:
        """Run every applicator bound to ``event_name`` for ``entity``."""

        changed = False
        for applicator in self.get_applicators_for_event(event_name):
            if self._run(applicator, entity, payload):
                changed = True
        return changed

    # Internal helpers ---------------------------------------------------
    def _make_event_handler(self, event_name: str) -> Callable:
        def handler(sender, **payload):
            entity = payload.get("entity")
            if entity is None:
                return
            try:
                self.world.component_for_entity(entity, StatBlock)
            except KeyError:
                return
            self.handle_event(event_name, entity, payload)

        return handler

    def _run(self, applicator: EffectApplicator, entity: int, payload: Mapping[str, Any]) -> bool:
        now = self.clock()
        if self.is_on_cooldown(applicator.id, entity, now):
            return False
        ctx = self.stat_system.create_effect_context(entity)
        if not applicator.predicate(payload, ctx):
            return False

        changed = False
        for effect in applicator.effects_to_add:
            if self.stat_system.has_effect(entity, effect.id):
                continue
            if self.stat_system.add_effect(entity, effect):
                changed = True
        for effect_id in applicator.effects_to_remove:
            if self.stat_system.remove_effect(entity, effect_id, reason=f"applicator:{applicator.id}"):
                changed = True
        if changed:
            self._last_fired[(applicator.id, entity)] = now
            logger.debug("Applicator %s changed effects on %s", applicator.id, ctx.entity_id)
        return changed


# Applicator helpers -----------------------------------------------------------
def stat_threshold_applicator(
    applicator_id: str,
    name: str,
    stat_type: str,
    op: str,
    threshold: float,
    effects_to_add: Iterable[Effect] = (),
    effects_to_remove: Iterable[str] = (),
    cooldown_ms: float = 0.0,
) -> EffectApplicator:
    compare = resolve_comparison(op)

    def predicate(payload: Mapping[str, Any], ctx: EffectContext) -> bool:
        return compare(ctx.current_stats.get(stat_type, 0.0), threshold)

    return EffectApplicator(
        id=applicator_id,
        name=name,
        event_name=EVENT_STAT_CHANGED,
        predicate=predicate,
        effects_to_add=tuple(effects_to_add),
        effects_to_remove=tuple(effects_to_remove),
        cooldown_ms=cooldown_ms,
        description=f"{stat_type} {op} {threshold:g}",
    )


def percentage_threshold_applicator(
    applicator_id: str,
    name: str,
    stat_type: str,
    op: str,
    percentage: float,
    base_stat_type: str | None = None,
    effects_to_add: Iterable[Effect] = (),
    effects_to_remove: Iterable[str] = (),
    cooldown_ms: float = 0.0,
) -> EffectApplicator:
    """Compare ``stat_type`` with a fraction of a reference value.

    The reference is the current value of ``base_stat_type`` when given,
    otherwise the base value of ``stat_type`` itself.
    """

    compare = resolve_comparison(op)

    def predicate(payload: Mapping[str, Any], ctx: EffectContext) -> bool:
        if base_stat_type is not None:
            reference = ctx.current_stats.get(base_stat_type, ctx.base_stats.get(base_stat_type, 0.0))
        else:
            reference = ctx.base_stats.get(stat_type, 0.0)
        return compare(ctx.current_stats.get(stat_type, 0.0), reference * percentage)

    return EffectApplicator(
        id=applicator_id,
        name=name,
        event_name=EVENT_STAT_CHANGED,
        predicate=predicate,
        effects_to_add=tuple(effects_to_add),
        effects_to_remove=tuple(effects_to_remove),
        cooldown_ms=cooldown_ms,
        description=f"{stat_type} {op} {percentage * 100:.0f}% of {base_stat_type or stat_type}",
    )


def bound_state_applicator(
    applicator_id: str,
    name: str,
    stat_type: str,
    states: Iterable[str] | None = None,
    effects_to_add: Iterable[Effect] = (),
    effects_to_remove: Iterable[str] = (),
    cooldown_ms: float = 0.0,
) -> EffectApplicator:
    """Fire when ``stat_type`` enters one of ``states`` (any state when omitted)."""

    wanted = frozenset(states) if states is not None else None

    def predicate(payload: Mapping[str, Any], ctx: EffectContext) -> bool:
        data: BoundEventData | None = payload.get("data")
        if data is None or data.stat_type != stat_type:
            return False
        return wanted is None or data.current_state in wanted

    return EffectApplicator(
        id=applicator_id,
        name=name,
        event_name=EVENT_BOUND_STATE_CHANGED,
        predicate=predicate,
        effects_to_add=tuple(effects_to_add),
        effects_to_remove=tuple(effects_to_remove),
        cooldown_ms=cooldown_ms,
    )


def bound_ratio_applicator(
    applicator_id: str,
    name: str,
    stat_type: str,
    condition: Callable[[float, BoundEventData], bool] | None = None,
    effects_to_add: Iterable[Effect] = (),
    effects_to_remove: Iterable[str] = (),
    cooldown_ms: float = 0.0,
    event_name: str = EVENT_BOUND_RATIO_CHANGED,
) -> EffectApplicator:
    """Fire on ratio events for ``stat_type`` whose data passes ``condition``.

    Pass ``event_name=EVENT_BOUND_THRESHOLD_CROSSED`` to react to distance
    windows instead of ratio changes.
    """

    if event_name not in (EVENT_BOUND_RATIO_CHANGED, EVENT_BOUND_THRESHOLD_CROSSED):
        raise ValueError(f"Unsupported bound event '{event_name}'")

    def predicate(payload: Mapping[str, Any], ctx: EffectContext) -> bool:
        data: BoundEventData | None = payload.get("data")
        if data is None or data.stat_type != stat_type:
            return False
        return condition is None or bool(condition(data.ratio, data))

    return EffectApplicator(
        id=applicator_id,
        name=name,
        event_name=event_name,
        predicate=predicate,
        effects_to_add=tuple(effects_to_add),
        effects_to_remove=tuple(effects_to_remove),
        cooldown_ms=cooldown_ms,
    )
