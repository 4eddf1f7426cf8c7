from __future__ import annotations

import logging
import random
from typing import Callable, Mapping

from entity_stats.bounds.calculator import (
    DEFAULT_THRESHOLDS,
    BoundConfig,
    BoundThresholds,
    calculate_bounds,
    get_state,
)
from entity_stats.effects.base import Effect, EffectContext, StatMap

logger = logging.getLogger(__name__)

ImpactFn = Callable[[EffectContext, StatMap, str, float], None]

# Target name passed to delegating applications; never a real stat.
WHOLE_EFFECT_TARGET = "<whole-effect>"


class AdditiveApplication:
    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        stats[stat_type] = stats.get(stat_type, 0.0) + impact

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        stats[stat_type] = stats.get(stat_type, 0.0) - impact


class MultiplicativeApplication:
    """Scale the stat by ``1 + impact / current``.

    A stat sitting at zero cannot be scaled or unscaled, so both directions
    leave it at zero instead of producing NaN.
    """

    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        current = stats.get(stat_type, 0.0)
        if current == 0:
            stats[stat_type] = 0.0
            return
        stats[stat_type] = current * (1 + impact / current)

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        current = stats.get(stat_type, 0.0)
        if current == 0:
            logger.debug("Skipping multiplicative reversal of '%s' at zero for %s", stat_type, ctx.entity_id)
            stats[stat_type] = 0.0
            return
        stats[stat_type] = current * (1 - impact / current)


class SetValueApplication:
    """Set the stat to ``base_value + impact``; reversal resets to ``base_value``."""

    def __init__(self, base_value: float) -> None:
        self.base_value = base_value

    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        stats[stat_type] = self.base_value + impact

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        stats[stat_type] = self.base_value


class PercentageApplication:
    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        current = stats.get(stat_type, 0.0)
        stats[stat_type] = current + current * impact

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        current = stats.get(stat_type, 0.0)
        stats[stat_type] = current - current * impact


class FunctionApplication:
    def __init__(self, apply_fn: ImpactFn, reverse_fn: ImpactFn) -> None:
        self.apply_fn = apply_fn
        self.reverse_fn = reverse_fn

    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        self.apply_fn(ctx, stats, stat_type, impact)

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        self.reverse_fn(ctx, stats, stat_type, impact)


class ChanceApplication:
    """Delegate to ``inner`` only when a roll against ``probability`` succeeds."""

    def __init__(self, probability: float, inner, rng: random.Random | None = None) -> None:
        self.probability = probability
        self.inner = inner
        self.rng = rng or random.Random()

    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        if self.rng.random() < self.probability:
            self.inner.apply_impact(ctx, stats, stat_type, impact)

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        if self.rng.random() < self.probability:
            self.inner.reverse_impact(ctx, stats, stat_type, impact)


class DelegateTarget:
    """A single placeholder target, so a delegating application runs once per pass.

    Wrapped effects mutate every stat they own by themselves; targeting each
    of their stats individually would apply them several times. The target
    handed to the application is always ``WHOLE_EFFECT_TARGET``, never a stat
    name, and applications receiving it must not index ``stats`` with it.
    """

    def get_targets(self, ctx: EffectContext) -> list[str]:
        return [WHOLE_EFFECT_TARGET]


class DelegateApplication:
    """Forward apply/reverse to a wrapped effect, ignoring the computed impact."""

    def __init__(self, effect: Effect) -> None:
        self.effect = effect

    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        self.effect.apply(ctx, stats)

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        self.effect.reverse(ctx, stats)


class StateDispatchApplication:
    """Delegate to the effect mapped to the current bound state of a stat.

    The state is read from the context's working stats on every call, so
    apply and reverse each dispatch on the state seen at that moment. A
    state with no mapped effect does nothing.
    """

    def __init__(
        self,
        bound_stat_type: str,
        bound_config: BoundConfig,
        state_effects: Mapping[str, Effect],
        thresholds: BoundThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self.bound_stat_type = bound_stat_type
        self.bound_config = bound_config
        self.state_effects = dict(state_effects)
        self.thresholds = thresholds

    def select(self, ctx: EffectContext) -> Effect | None:
        result = calculate_bounds(self.bound_stat_type, self.bound_config, ctx.current_stats)
        return self.state_effects.get(get_state(result, self.thresholds))

    def apply_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        effect = self.select(ctx)
        if effect is not None:
            effect.apply(ctx, stats)

    def reverse_impact(self, ctx: EffectContext, stats: StatMap, stat_type: str, impact: float) -> None:
        effect = self.select(ctx)
        if effect is not None:
            effect.reverse(ctx, stats)
