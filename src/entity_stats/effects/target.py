from __future__ import annotations

from typing import Callable, Iterable

from entity_stats.bounds.calculator import BoundConfig, BoundResult, calculate_bounds, calculate_ratio
from entity_stats.effects.base import EffectContext


class SingleStatTarget:
    def __init__(self, stat_type: str) -> None:
        self.stat_type = stat_type

    def get_targets(self, ctx: EffectContext) -> list[str]:
        return [self.stat_type]


class MultipleStatTarget:
    def __init__(self, stat_types: Iterable[str]) -> None:
        self.stat_types = list(stat_types)

    def get_targets(self, ctx: EffectContext) -> list[str]:
        return list(self.stat_types)


class ConditionalStatTarget:
    """Targets chosen by a selector; a failing selector yields the fallback."""

    def __init__(
        self,
        selector: Callable[[EffectContext], Iterable[str]],
        fallback: Iterable[str] = (),
    ) -> None:
        self.selector = selector
        self.fallback = list(fallback)

    def get_targets(self, ctx: EffectContext) -> list[str]:
        try:
            return list(self.selector(ctx))
        except Exception:
            return list(self.fallback)


class BoundBasedStatTarget:
    def __init__(
        self,
        bound_stat_type: str,
        bound_config: BoundConfig,
        target_fn: Callable[[float, BoundResult], Iterable[str]],
        fallback: Iterable[str] = (),
    ) -> None:
        self.bound_stat_type = bound_stat_type
        self.bound_config = bound_config
        self.target_fn = target_fn
        self.fallback = list(fallback)

    def get_targets(self, ctx: EffectContext) -> list[str]:
        try:
            result = calculate_bounds(self.bound_stat_type, self.bound_config, ctx.current_stats)
            return list(self.target_fn(calculate_ratio(result), result))
        except Exception:
            return list(self.fallback)
