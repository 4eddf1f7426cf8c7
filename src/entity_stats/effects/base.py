from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, MutableMapping, Protocol, Sequence, runtime_checkable

StatMap = MutableMapping[str, float]


@dataclass(frozen=True, slots=True)
class StatStackability:
    """Per-stat rule governing whether effects touching ``stat_type`` may coexist."""

    stat_type: str
    stackable: bool = True
    max_stack_size: int | None = None


@dataclass(frozen=True, slots=True)
class EffectContext:
    """Snapshot shared by every effect during one calculation pass.

    ``current_stats`` is the working map of the pass: effects applied earlier
    in priority order are visible to effects applied later. ``base_stats`` is
    a private copy and is safe to read at any time.
    """

    entity_id: str
    effect_stack: tuple["Effect", ...]
    current_stats: StatMap
    base_stats: Mapping[str, float] = field(default_factory=dict)
    timestamp: float = 0.0


@runtime_checkable
class Effect(Protocol):
    """A named, prioritized, composable stat modifier."""

    id: str
    name: str
    priority: int
    stat_types: Sequence[str]
    stackability_rules: Sequence[StatStackability]

    def apply(self, ctx: EffectContext, stats: StatMap) -> None:
        ...

    def reverse(self, ctx: EffectContext, stats: StatMap) -> None:
        ...

    def is_active(self, ctx: EffectContext) -> bool:
        ...

    def can_stack_with(self, other: "Effect", stat_type: str) -> bool:
        ...


class Applicability(Protocol):
    def is_applicable(self, ctx: EffectContext) -> bool:
        ...


class Impact(Protocol):
    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        ...


class Target(Protocol):
    def get_targets(self, ctx: EffectContext) -> list[str]:
        ...


class Application(Protocol):
    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        ...

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        ...


def find_stackability_rule(effect: Effect, stat_type: str) -> StatStackability | None:
    for rule in effect.stackability_rules:
        if rule.stat_type == stat_type:
            return rule
    return None


def rules_allow_stacking(first: Effect, second: Effect, stat_type: str) -> bool:
    """Effects stack on ``stat_type`` unless both declare it non-stackable."""

    first_rule = find_stackability_rule(first, stat_type)
    second_rule = find_stackability_rule(second, stat_type)
    if first_rule is None or second_rule is None:
        return True
    return first_rule.stackable or second_rule.stackable
