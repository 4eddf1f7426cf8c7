from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from esper import World

from entity_stats.components.effect_list import EffectList, EffectTiming
from entity_stats.components.stat_block import StatBlock
from entity_stats.components.stat_cache import CachedActivity, CachedStats, StatCache
from entity_stats.constants import ENFORCE_STACKABILITY, STATS_CACHE_TTL_MS
from entity_stats.effects.base import Effect, EffectContext
from entity_stats.events.bus import (
    EVENT_EFFECT_ADDED,
    EVENT_EFFECT_APPLY_REQUEST,
    EVENT_EFFECT_REJECTED,
    EVENT_EFFECT_REMOVE_REQUEST,
    EVENT_EFFECT_REMOVED,
    EVENT_STAT_CHANGED,
    EventBus,
)
from entity_stats.utils.timing import Clock, resolve_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatFrame:
    """Point-in-time view of an entity handed to snapshot consumers."""

    entity_id: str
    stats: dict[str, float]
    effect_ids: tuple[str, ...]
    timestamp: float


class StatSystem:
    """Owns attached effects and derives current stats from base stats.

    Current stats are recomputed by applying every active effect, lowest
    priority first, to a copy of the base stats. Results are cached per
    entity for ``cache_ttl_ms`` and the cache is dropped whenever the effect
    set or a base stat changes.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        clock: Clock | None = None,
        cache_ttl_ms: float = STATS_CACHE_TTL_MS,
        enforce_stackability: bool = ENFORCE_STACKABILITY,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.clock = resolve_clock(clock)
        self.cache_ttl_ms = cache_ttl_ms
        self.enforce_stackability = enforce_stackability
        setattr(world, "stat_system", self)
        self.event_bus.subscribe(EVENT_EFFECT_APPLY_REQUEST, self._on_effect_apply_request)
        self.event_bus.subscribe(EVENT_EFFECT_REMOVE_REQUEST, self._on_effect_remove_request)

    # Stats --------------------------------------------------------------
    def get_current_stats(self, entity: int) -> dict[str, float]:
        block = self.world.component_for_entity(entity, StatBlock)
        effect_list = self._ensure_effect_list(entity)
        cache = self._ensure_cache(entity)
        now = self.clock()
        key = self._cache_key(block, effect_list)
        cached = cache.entries.get(key)
        if cached is not None and now - cached.computed_at < self.cache_ttl_ms:
            return dict(cached.stats)

        effects = list(effect_list.effects.values())
        base_ctx = EffectContext(
            entity_id=block.entity_id,
            effect_stack=tuple(effects),
            current_stats=dict(block.base),
            base_stats=dict(block.base),
            timestamp=now,
        )
        active = [effect for effect in effects if self._is_effect_active(cache, effect, base_ctx, now)]
        active.sort(key=lambda effect: (effect.priority, effect_list.sequence.get(effect.id, 0)))

        stats = dict(block.base)
        ctx = EffectContext(
            entity_id=block.entity_id,
            effect_stack=tuple(effects),
            current_stats=stats,
            base_stats=dict(block.base),
            timestamp=now,
        )
        for effect in active:
            effect.apply(ctx, stats)

        cache.entries[key] = CachedStats(
            stats=dict(stats),
            computed_at=now,
            effect_ids=tuple(effect.id for effect in active),
        )
        cache.calculations += 1
        logger.debug(
            "Recalculated stats for %s with %d of %d effects active",
            block.entity_id,
            len(active),
            len(effects),
        )
        return dict(stats)

    def get_stat(self, entity: int, stat_type: str) -> float:
        return self.get_current_stats(entity).get(stat_type, 0.0)

    def get_base_stats(self, entity: int) -> dict[str, float]:
        return dict(self.world.component_for_entity(entity, StatBlock).base)

    def set_base_stat(self, entity: int, stat_type: str, value: float) -> None:
        block = self.world.component_for_entity(entity, StatBlock)
        previous = block.base.get(stat_type, 0.0)
        block.base[stat_type] = value
        self._invalidate(entity)
        self.event_bus.emit(
            EVENT_STAT_CHANGED,
            entity=entity,
            entity_id=block.entity_id,
            stat_type=stat_type,
            value=value,
            previous_value=previous,
            timestamp=self.clock(),
        )

    def set_stat(self, entity: int, stat_type: str, value: float) -> None:
        self.set_base_stat(entity, stat_type, value)

    def calculation_count(self, entity: int) -> int:
        return self._ensure_cache(entity).calculations

    # Effects ------------------------------------------------------------
    def add_effect(self, entity: int, effect: Effect, duration: float | None = None) -> bool:
        """Attach ``effect``; returns False when stackability rules reject it."""

        block = self.world.component_for_entity(entity, StatBlock)
        effect_list = self._ensure_effect_list(entity)
        now = self.clock()
        if self.enforce_stackability:
            conflict = self._find_stacking_conflict(effect_list, effect)
            if conflict is not None:
                stat_type, reason = conflict
                logger.debug("Rejected effect %s on %s: %s", effect.id, block.entity_id, reason)
                self.event_bus.emit(
                    EVENT_EFFECT_REJECTED,
                    entity=entity,
                    entity_id=block.entity_id,
                    effect=effect,
                    stat_type=stat_type,
                    reason=reason,
                    timestamp=now,
                )
                return False

        if effect.id not in effect_list.sequence:
            effect_list.sequence[effect.id] = effect_list.next_sequence
            effect_list.next_sequence += 1
        effect_list.effects[effect.id] = effect
        effect_list.timings[effect.id] = EffectTiming(
            effect_id=effect.id,
            applied_at=now,
            duration=duration,
            expires_at=now + duration if duration is not None else None,
        )
        self._invalidate(entity)
        logger.debug("Added effect %s to %s (duration=%s)", effect.id, block.entity_id, duration)
        self.event_bus.emit(
            EVENT_EFFECT_ADDED,
            entity=entity,
            entity_id=block.entity_id,
            effect=effect,
            duration=duration,
            timestamp=now,
        )
        return True

    def remove_effect(self, entity: int, effect_id: str, reason: str = "removed") -> bool:
        block = self.world.component_for_entity(entity, StatBlock)
        effect_list = self._ensure_effect_list(entity)
        if effect_id not in effect_list.effects:
            return False
        del effect_list.effects[effect_id]
        effect_list.timings.pop(effect_id, None)
        effect_list.sequence.pop(effect_id, None)
        self._invalidate(entity)
        logger.debug("Removed effect %s from %s (%s)", effect_id, block.entity_id, reason)
        self.event_bus.emit(
            EVENT_EFFECT_REMOVED,
            entity=entity,
            entity_id=block.entity_id,
            effect_id=effect_id,
            reason=reason,
            timestamp=self.clock(),
        )
        return True

    def check_expired_effects(self, entity: int, now: float | None = None) -> list[str]:
        """Remove every timed effect whose expiry is at or before ``now``."""

        if now is None:
            now = self.clock()
        effect_list = self._ensure_effect_list(entity)
        expired = [
            effect_id
            for effect_id, timing in list(effect_list.timings.items())
            if timing.expires_at is not None and timing.expires_at <= now
        ]
        removed: list[str] = []
        for effect_id in expired:
            if self.remove_effect(entity, effect_id, reason="expired"):
                removed.append(effect_id)
        return removed

    def get_effects(self, entity: int) -> list[Effect]:
        return list(self._ensure_effect_list(entity).effects.values())

    def has_effect(self, entity: int, effect_id: str) -> bool:
        return effect_id in self._ensure_effect_list(entity).effects

    def get_effect_timing(self, entity: int, effect_id: str) -> EffectTiming | None:
        return self._ensure_effect_list(entity).timings.get(effect_id)

    def get_all_effect_timings(self, entity: int) -> dict[str, EffectTiming]:
        return dict(self._ensure_effect_list(entity).timings)

    def get_stats_for_frame(self, entity: int) -> StatFrame:
        block = self.world.component_for_entity(entity, StatBlock)
        stats = self.get_current_stats(entity)
        effect_ids = tuple(self._ensure_effect_list(entity).effects)
        return StatFrame(entity_id=block.entity_id, stats=stats, effect_ids=effect_ids, timestamp=self.clock())

    def create_effect_context(self, entity: int) -> EffectContext:
        block = self.world.component_for_entity(entity, StatBlock)
        return EffectContext(
            entity_id=block.entity_id,
            effect_stack=tuple(self.get_effects(entity)),
            current_stats=self.get_current_stats(entity),
            base_stats=dict(block.base),
            timestamp=self.clock(),
        )

    def expire_all(self, now: float | None = None) -> dict[int, list[str]]:
        """Run expiry for every entity holding effects; returns removed ids per entity."""

        removed: dict[int, list[str]] = {}
        for entity, _ in list(self.world.get_components(StatBlock, EffectList)):
            expired = self.check_expired_effects(entity, now)
            if expired:
                removed[entity] = expired
        return removed

    # Event handlers -----------------------------------------------------
    def _on_effect_apply_request(self, sender: Any, **payload: Any) -> None:
        entity = payload.get("entity")
        effect = payload.get("effect")
        if entity is None or effect is None:
            return
        self.add_effect(entity, effect, payload.get("duration"))

    def _on_effect_remove_request(self, sender: Any, **payload: Any) -> None:
        entity = payload.get("entity")
        effect_id = payload.get("effect_id")
        if entity is None or effect_id is None:
            return
        self.remove_effect(entity, effect_id, reason=payload.get("reason", "removed"))

    # Internal helpers ---------------------------------------------------
    def _ensure_effect_list(self, entity: int) -> EffectList:
        try:
            return self.world.component_for_entity(entity, EffectList)
        except KeyError:
            effect_list = EffectList()
            self.world.add_component(entity, effect_list)
            return effect_list

    def _ensure_cache(self, entity: int) -> StatCache:
        try:
            return self.world.component_for_entity(entity, StatCache)
        except KeyError:
            cache = StatCache()
            self.world.add_component(entity, cache)
            return cache

    def _invalidate(self, entity: int) -> None:
        self._ensure_cache(entity).clear()

    @staticmethod
    def _cache_key(block: StatBlock, effect_list: EffectList) -> str:
        return f"{block.entity_id}|{','.join(sorted(effect_list.effects))}"

    def _is_effect_active(self, cache: StatCache, effect: Effect, base_ctx: EffectContext, now: float) -> bool:
        cached = cache.activity.get(effect.id)
        if cached is not None and now - cached.checked_at < self.cache_ttl_ms:
            return cached.active
        active = bool(effect.is_active(base_ctx))
        cache.activity[effect.id] = CachedActivity(active=active, checked_at=now)
        return active

    @staticmethod
    def _find_stacking_conflict(effect_list: EffectList, effect: Effect) -> tuple[str, str] | None:
        for rule in effect.stackability_rules:
            stat_type = rule.stat_type
            others = [
                other
                for other in list(effect_list.effects.values())
                if other.id != effect.id and stat_type in other.stat_types
            ]
            if not rule.stackable:
                for other in others:
                    if not effect.can_stack_with(other, stat_type):
                        return stat_type, f"cannot stack with '{other.id}' on '{stat_type}'"
            if rule.max_stack_size is not None and len(others) >= rule.max_stack_size:
                return stat_type, f"stack limit {rule.max_stack_size} reached on '{stat_type}'"
        return None
