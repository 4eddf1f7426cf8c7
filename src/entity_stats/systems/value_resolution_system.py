from __future__ import annotations

import itertools
import logging
from typing import Any, Mapping

from esper import World

from entity_stats.components.effect_list import EffectList
from entity_stats.components.equipped_gear import EquippedGear
from entity_stats.components.stat_block import StatBlock
from entity_stats.components.value_providers import ValueProviders
from entity_stats.effects.active import Gear, ValueProvider, ValueRequestContext, ValueRequestResult
from entity_stats.effects.base import Effect
from entity_stats.events.bus import (
    EVENT_VALUE_PROVIDER_REGISTERED,
    EVENT_VALUE_PROVIDER_UNREGISTERED,
    EventBus,
)
from entity_stats.systems.stat_system import StatSystem
from entity_stats.utils.timing import Clock, resolve_clock

logger = logging.getLogger(__name__)


class ValueResolutionSystem:
    """Answers purpose-keyed value requests from gear, providers and effects.

    Candidates are asked in descending priority; equal priorities keep the
    order gear, providers, effects, each in registration order. The first
    candidate returning a value wins and the rest are never consulted.
    """

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
        self._request_counter = itertools.count(1)
        setattr(world, "value_resolution_system", self)

    # Public API ---------------------------------------------------------
    def request_value(
        self,
        entity: int,
        purpose: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> ValueRequestResult | None:
        block = self.world.component_for_entity(entity, StatBlock)
        timestamp = self.clock()
        ctx = ValueRequestContext(
            entity_id=block.entity_id,
            request_id=f"{block.entity_id}-{purpose}-{next(self._request_counter)}",
            purpose=purpose,
            timestamp=timestamp,
            parameters=dict(parameters or {}),
            base_stats=dict(block.base),
            current_stats=self.stat_system.get_current_stats(entity),
            active_effects=tuple(self._effects(entity)),
        )

        candidates: list[Any] = []
        for gear in self._gear(entity):
            if gear.can_handle_purpose(purpose) and gear.is_equipped(ctx):
                candidates.append(gear)
        for provider in self._providers(entity):
            if provider.can_handle_purpose(purpose) and provider.is_active(ctx):
                candidates.append(provider)
        for effect in ctx.active_effects:
            if purpose not in (getattr(effect, "supported_purposes", None) or ()):
                continue
            is_active_for_purpose = getattr(effect, "is_active_for_purpose", None)
            if is_active_for_purpose is not None and is_active_for_purpose(purpose, ctx) is False:
                continue
            candidates.append(effect)

        # sort() is stable, so equal priorities keep the gather order above.
        candidates.sort(key=lambda candidate: candidate.priority, reverse=True)
        for candidate in candidates:
            provide_value = getattr(candidate, "provide_value", None)
            if provide_value is None:
                continue
            value = provide_value(purpose, ctx)
            if value is not None:
                logger.debug("Request %s answered by %s with %s", ctx.request_id, candidate.id, value)
                return ValueRequestResult(
                    value=value,
                    provider_id=candidate.id,
                    purpose=purpose,
                    timestamp=timestamp,
                    context=ctx,
                )
        logger.debug("Request %s went unanswered by %d candidates", ctx.request_id, len(candidates))
        return None

    def register_value_provider(self, entity: int, provider: ValueProvider) -> None:
        block = self.world.component_for_entity(entity, StatBlock)
        self._ensure_providers(entity).providers[provider.id] = provider
        self.event_bus.emit(
            EVENT_VALUE_PROVIDER_REGISTERED,
            entity=entity,
            entity_id=block.entity_id,
            provider_id=provider.id,
            provider_name=provider.name,
            timestamp=self.clock(),
        )

    def unregister_value_provider(self, entity: int, provider_id: str) -> bool:
        block = self.world.component_for_entity(entity, StatBlock)
        providers = self._ensure_providers(entity).providers
        if provider_id not in providers:
            return False
        del providers[provider_id]
        self.event_bus.emit(
            EVENT_VALUE_PROVIDER_UNREGISTERED,
            entity=entity,
            entity_id=block.entity_id,
            provider_id=provider_id,
            timestamp=self.clock(),
        )
        return True

    def get_value_providers(self, entity: int) -> list[ValueProvider]:
        return self._providers(entity)

    # Internal helpers ---------------------------------------------------
    def _ensure_providers(self, entity: int) -> ValueProviders:
        try:
            return self.world.component_for_entity(entity, ValueProviders)
        except KeyError:
            providers = ValueProviders()
            self.world.add_component(entity, providers)
            return providers

    def _providers(self, entity: int) -> list[ValueProvider]:
        try:
            return list(self.world.component_for_entity(entity, ValueProviders).providers.values())
        except KeyError:
            return []

    def _gear(self, entity: int) -> list[Gear]:
        try:
            return list(self.world.component_for_entity(entity, EquippedGear).slots.values())
        except KeyError:
            return []

    def _effects(self, entity: int) -> list[Effect]:
        try:
            return list(self.world.component_for_entity(entity, EffectList).effects.values())
        except KeyError:
            return []
