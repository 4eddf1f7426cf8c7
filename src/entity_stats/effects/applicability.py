from __future__ import annotations

import operator
import random
from typing import Callable, Iterable

from entity_stats.bounds.calculator import (
    DEFAULT_THRESHOLDS,
    BoundConfig,
    BoundResult,
    BoundThresholds,
    calculate_bounds,
    calculate_ratio,
    get_state,
)
from entity_stats.effects.base import EffectContext

COMPARISONS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


def resolve_comparison(op: str) -> Callable[[float, float], bool]:
    try:
        return COMPARISONS[op]
    except KeyError as exc:
        raise ValueError(f"Unsupported comparison operator '{op}'") from exc


class AlwaysApplicable:
    def is_applicable(self, ctx: EffectContext) -> bool:
        return True


class ConditionalApplicable:
    """Applicable whenever the user predicate returns true."""

    def __init__(self, condition: Callable[[EffectContext], bool]) -> None:
        self.condition = condition

    def is_applicable(self, ctx: EffectContext) -> bool:
        return bool(self.condition(ctx))


class StatThresholdApplicable:
    """Compare the current value of a stat (absent reads as 0) to a threshold."""

    def __init__(self, stat_type: str, op: str, threshold: float) -> None:
        self.stat_type = stat_type
        self.op = op
        self.threshold = threshold
        self._compare = resolve_comparison(op)

    def is_applicable(self, ctx: EffectContext) -> bool:
        current = ctx.current_stats.get(self.stat_type, 0.0)
        return self._compare(current, self.threshold)


class BoundBasedApplicable:
    def __init__(
        self,
        stat_type: str,
        bound_config: BoundConfig,
        condition: Callable[[float, BoundResult], bool],
    ) -> None:
        self.stat_type = stat_type
        self.bound_config = bound_config
        self.condition = condition

    def is_applicable(self, ctx: EffectContext) -> bool:
        result = calculate_bounds(self.stat_type, self.bound_config, ctx.current_stats)
        return bool(self.condition(calculate_ratio(result), result))


class BoundStateApplicable:
    def __init__(
        self,
        stat_type: str,
        bound_config: BoundConfig,
        allowed_states: Iterable[str],
        thresholds: BoundThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self.stat_type = stat_type
        self.bound_config = bound_config
        self.allowed_states = frozenset(allowed_states)
        self.thresholds = thresholds

    def is_applicable(self, ctx: EffectContext) -> bool:
        result = calculate_bounds(self.stat_type, self.bound_config, ctx.current_stats)
        return get_state(result, self.thresholds) in self.allowed_states


class ChanceApplicable:
    """Applicable with the given probability, rolled on every check."""

    def __init__(self, probability: float, rng: random.Random | None = None) -> None:
        self.probability = probability
        self.rng = rng or random.Random()

    def is_applicable(self, ctx: EffectContext) -> bool:
        return self.rng.random() < self.probability
