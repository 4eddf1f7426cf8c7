from __future__ import annotations

import random
from typing import Callable, Iterable, NamedTuple

from entity_stats.bounds.calculator import BoundConfig, BoundResult, calculate_bounds, calculate_ratio
from entity_stats.effects.base import EffectContext


class AdditiveImpact:
    def __init__(self, value: float) -> None:
        self.value = value

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        return self.value


class MultiplicativeImpact:
    """Impact expressed as the delta a factor would add to the current value."""

    def __init__(self, factor: float) -> None:
        self.factor = factor

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        current = ctx.current_stats.get(stat_type, 0.0)
        return current * (self.factor - 1)


class PercentageImpact:
    def __init__(self, percentage: float) -> None:
        self.percentage = percentage

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        current = ctx.current_stats.get(stat_type, 0.0)
        return current * self.percentage


class BoundBasedImpact:
    """Impact derived from where another stat sits inside its bounds."""

    def __init__(
        self,
        bound_stat_type: str,
        bound_config: BoundConfig,
        impact_fn: Callable[[float, BoundResult], float],
    ) -> None:
        self.bound_stat_type = bound_stat_type
        self.bound_config = bound_config
        self.impact_fn = impact_fn

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        result = calculate_bounds(self.bound_stat_type, self.bound_config, ctx.current_stats)
        return self.impact_fn(calculate_ratio(result), result)


class StatBasedImpact:
    def __init__(self, source_stat_type: str, multiplier: float = 1.0) -> None:
        self.source_stat_type = source_stat_type
        self.multiplier = multiplier

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        return ctx.current_stats.get(self.source_stat_type, 0.0) * self.multiplier


class FunctionImpact:
    def __init__(self, impact_fn: Callable[[EffectContext, str], float]) -> None:
        self.impact_fn = impact_fn

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        return self.impact_fn(ctx, stat_type)


class RandomImpact:
    """Uniform impact in ``[low, high]`` drawn from an injected generator.

    Every call draws again, so reversing a random effect does not undo the
    exact amount that was applied.
    """

    def __init__(self, low: float, high: float, rng: random.Random | None = None) -> None:
        self.low = low
        self.high = high
        self.rng = rng or random.Random()

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        return self.rng.uniform(self.low, self.high)


class GaussianRandomImpact:
    """Normally distributed impact clamped to ``[low, high]``."""

    def __init__(
        self,
        low: float,
        high: float,
        mean: float,
        standard_deviation: float,
        rng: random.Random | None = None,
    ) -> None:
        if standard_deviation < 0:
            raise ValueError("standard_deviation must not be negative")
        self.low = min(low, high)
        self.high = max(low, high)
        self.mean = mean
        self.standard_deviation = standard_deviation
        self.rng = rng or random.Random()

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        value = self.rng.gauss(self.mean, self.standard_deviation)
        return max(self.low, min(self.high, value))


class WeightedChoice(NamedTuple):
    stat_type: str
    value: float
    weight: float


class WeightedRandomImpact:
    """Picks one of the choices for the targeted stat, weighted by ``weight``.

    Each stat draws among its own choices; a stat with no choices, or whose
    weights sum to zero, gets no impact.
    """

    def __init__(self, choices: Iterable[WeightedChoice | tuple[str, float, float]], rng: random.Random | None = None) -> None:
        self.choices = tuple(WeightedChoice(*choice) for choice in choices)
        if any(choice.weight < 0 for choice in self.choices):
            raise ValueError("weights must not be negative")
        self.rng = rng or random.Random()

    def calculate_impact(self, ctx: EffectContext, stat_type: str) -> float:
        relevant = [choice for choice in self.choices if choice.stat_type == stat_type]
        if not relevant or sum(choice.weight for choice in relevant) <= 0:
            return 0.0
        picked = self.rng.choices(relevant, weights=[choice.weight for choice in relevant])[0]
        return picked.value
