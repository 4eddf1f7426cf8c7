"""Sources that answer "give me a value for purpose X" requests.

Three kinds of source compete for a request: equipped gear, registered value
providers and attached effects that advertise ``supported_purposes``. Each
exposes a numeric ``priority``; the resolver asks them in descending order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence, runtime_checkable

from entity_stats.effects.base import Effect, EffectContext, StatMap, StatStackability, rules_allow_stacking


@dataclass(frozen=True, slots=True)
class ValueRequestContext:
    """Shared by every candidate consulted during one request."""

    entity_id: str
    request_id: str
    purpose: str
    timestamp: float
    parameters: Mapping[str, Any] = field(default_factory=dict)
    base_stats: Mapping[str, float] = field(default_factory=dict)
    current_stats: Mapping[str, float] = field(default_factory=dict)
    active_effects: tuple[Effect, ...] = ()


@dataclass(frozen=True, slots=True)
class ValueRequestResult:
    value: float
    provider_id: str
    purpose: str
    timestamp: float
    context: ValueRequestContext


ValueCalculator = Callable[[str, ValueRequestContext], "float | None"]


@runtime_checkable
class Gear(Protocol):
    id: str
    name: str
    priority: int
    supported_purposes: Sequence[str]
    slot: str | None

    def can_handle_purpose(self, purpose: str) -> bool:
        ...

    def provide_value(self, purpose: str, ctx: ValueRequestContext) -> float | None:
        ...

    def is_equipped(self, ctx: ValueRequestContext) -> bool:
        ...

    def get_passive_effects(self) -> list[Effect]:
        ...


@runtime_checkable
class ValueProvider(Protocol):
    id: str
    name: str
    priority: int
    supported_purposes: Sequence[str]

    def can_handle_purpose(self, purpose: str) -> bool:
        ...

    def provide_value(self, purpose: str, ctx: ValueRequestContext) -> float | None:
        ...

    def is_active(self, ctx: ValueRequestContext) -> bool:
        ...


class GenericGear:
    """Gear backed by a value calculator, optionally carrying passive effects."""

    def __init__(
        self,
        gear_id: str,
        name: str,
        gear_type: str,
        priority: int,
        supported_purposes: Iterable[str],
        value_calculator: ValueCalculator,
        passive_effects: Iterable[Effect] = (),
        slot: str | None = None,
    ) -> None:
        self.id = gear_id
        self.name = name
        self.type = gear_type
        self.priority = priority
        self.supported_purposes = tuple(supported_purposes)
        self.value_calculator = value_calculator
        self.passive_effects = list(passive_effects)
        self.slot = slot

    def can_handle_purpose(self, purpose: str) -> bool:
        return purpose in self.supported_purposes

    def provide_value(self, purpose: str, ctx: ValueRequestContext) -> float | None:
        if not self.can_handle_purpose(purpose):
            return None
        return self.value_calculator(purpose, ctx)

    def is_equipped(self, ctx: ValueRequestContext) -> bool:
        # Sitting in the entity's slot map is what makes gear equipped.
        return True

    def get_passive_effects(self) -> list[Effect]:
        return list(self.passive_effects)

    def has_passive_effects(self) -> bool:
        return bool(self.passive_effects)


class BaseStatValueProvider:
    """Fallback provider answering with ``base_stats[stat_type] * multiplier``."""

    def __init__(
        self,
        provider_id: str,
        name: str,
        priority: int,
        supported_purposes: Iterable[str],
        stat_type: str,
        multiplier: float = 1.0,
    ) -> None:
        self.id = provider_id
        self.name = name
        self.priority = priority
        self.supported_purposes = tuple(supported_purposes)
        self.stat_type = stat_type
        self.multiplier = multiplier

    def can_handle_purpose(self, purpose: str) -> bool:
        return purpose in self.supported_purposes

    def provide_value(self, purpose: str, ctx: ValueRequestContext) -> float | None:
        if not self.can_handle_purpose(purpose):
            return None
        return ctx.base_stats.get(self.stat_type, 0.0) * self.multiplier

    def is_active(self, ctx: ValueRequestContext) -> bool:
        return True


class ActiveEffect:
    """An effect that contributes answers to value requests.

    It leaves stats untouched during the calculation pass; its only job is
    ``provide_value``. ``is_active_for_purpose`` defaults to membership in
    ``supported_purposes``.
    """

    def __init__(
        self,
        effect_id: str,
        name: str,
        stat_types: Iterable[str],
        supported_purposes: Iterable[str],
        value_calculator: ValueCalculator,
        priority: int = 0,
        stackability_rules: Iterable[StatStackability] = (),
    ) -> None:
        self.id = effect_id
        self.name = name
        self.priority = priority
        self.stat_types: Sequence[str] = tuple(stat_types)
        self.stackability_rules: Sequence[StatStackability] = tuple(stackability_rules)
        self.supported_purposes: Sequence[str] = tuple(supported_purposes)
        self.value_calculator = value_calculator

    def apply(self, ctx: EffectContext, stats: StatMap) -> None:
        return

    def reverse(self, ctx: EffectContext, stats: StatMap) -> None:
        return

    def is_active(self, ctx: EffectContext) -> bool:
        return True

    def can_stack_with(self, other: Effect, stat_type: str) -> bool:
        return rules_allow_stacking(self, other, stat_type)

    def is_active_for_purpose(self, purpose: str, ctx: ValueRequestContext) -> bool:
        return purpose in self.supported_purposes

    def provide_value(self, purpose: str, ctx: ValueRequestContext) -> float | None:
        return self.value_calculator(purpose, ctx)

    def __repr__(self) -> str:
        return f"ActiveEffect(id={self.id!r}, purposes={list(self.supported_purposes)!r})"


def create_active_effect(
    effect_id: str,
    name: str,
    stat_types: Iterable[str],
    supported_purposes: Iterable[str],
    value_calculator: ValueCalculator,
    priority: int = 0,
    stackability_rules: Iterable[StatStackability] = (),
) -> ActiveEffect:
    return ActiveEffect(
        effect_id,
        name,
        stat_types,
        supported_purposes,
        value_calculator,
        priority=priority,
        stackability_rules=stackability_rules,
    )


def create_gear(
    gear_id: str,
    name: str,
    gear_type: str,
    priority: int,
    supported_purposes: Iterable[str],
    value_calculator: ValueCalculator,
    passive_effects: Iterable[Effect] = (),
    slot: str | None = None,
) -> GenericGear:
    return GenericGear(gear_id, name, gear_type, priority, supported_purposes, value_calculator, passive_effects, slot)


def create_base_stat_provider(
    provider_id: str,
    name: str,
    priority: int,
    supported_purposes: Iterable[str],
    stat_type: str,
    multiplier: float = 1.0,
) -> BaseStatValueProvider:
    return BaseStatValueProvider(provider_id, name, priority, supported_purposes, stat_type, multiplier)
