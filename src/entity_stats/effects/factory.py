"""Ready-made effects built from the standard policy combinations.

Single-stat recipes use ``AlwaysApplicable`` with a ``SingleStatTarget`` and
one impact/application pair. Wrapping recipes put a gate in front of an
existing effect and reuse its stat types and stackability rules.
"""

from __future__ import annotations

import random
from typing import Callable, Iterable, Mapping

from entity_stats.bounds.calculator import DEFAULT_THRESHOLDS, BoundConfig, BoundResult, BoundThresholds
from entity_stats.effects.applicability import (
    AlwaysApplicable,
    BoundBasedApplicable,
    ChanceApplicable,
    ConditionalApplicable,
    StatThresholdApplicable,
)
from entity_stats.effects.application import (
    AdditiveApplication,
    ChanceApplication,
    DelegateApplication,
    DelegateTarget,
    FunctionApplication,
    MultiplicativeApplication,
    PercentageApplication,
    SetValueApplication,
    StateDispatchApplication,
)
from entity_stats.effects.base import Applicability, Effect, EffectContext, Impact, StatMap, StatStackability
from entity_stats.effects.composed import ComposedEffect, ComposedEffectBuilder
from entity_stats.effects.impact import (
    AdditiveImpact,
    BoundBasedImpact,
    FunctionImpact,
    GaussianRandomImpact,
    MultiplicativeImpact,
    PercentageImpact,
    RandomImpact,
    WeightedChoice,
    WeightedRandomImpact,
)
from entity_stats.effects.target import MultipleStatTarget, SingleStatTarget


def _single_stat_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    impact: Impact,
    application,
    stackable: bool,
    priority: int,
) -> ComposedEffect:
    return (
        ComposedEffectBuilder(effect_id, name)
        .with_priority(priority)
        .with_stat_types([stat_type])
        .with_stackability_rules([StatStackability(stat_type, stackable)])
        .with_applicability(AlwaysApplicable())
        .with_impact(impact)
        .with_target(SingleStatTarget(stat_type))
        .with_application(application)
        .build()
    )


def _wrapping_effect(
    effect_id: str,
    name: str,
    applicability: Applicability,
    effect: Effect,
    priority: int,
) -> ComposedEffect:
    return (
        ComposedEffectBuilder(effect_id, name)
        .with_priority(priority)
        .with_stat_types(effect.stat_types)
        .with_stackability_rules(effect.stackability_rules)
        .with_applicability(applicability)
        .with_impact(AdditiveImpact(0.0))
        .with_target(DelegateTarget())
        .with_application(DelegateApplication(effect))
        .build()
    )


def create_additive_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    value: float,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    return _single_stat_effect(
        effect_id, name, stat_type, AdditiveImpact(value), AdditiveApplication(), stackable, priority
    )


def create_multiplicative_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    factor: float,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    return _single_stat_effect(
        effect_id, name, stat_type, MultiplicativeImpact(factor), MultiplicativeApplication(), stackable, priority
    )


def create_percentage_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    percentage: float,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    return _single_stat_effect(
        effect_id, name, stat_type, PercentageImpact(percentage), PercentageApplication(), stackable, priority
    )


def create_set_value_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    value: float,
    priority: int = 0,
) -> ComposedEffect:
    """Pin ``stat_type`` to ``value``; never stackable with another pin."""

    return _single_stat_effect(
        effect_id, name, stat_type, AdditiveImpact(0.0), SetValueApplication(value), False, priority
    )


def create_conditional_effect(
    effect_id: str,
    name: str,
    condition: Callable[[EffectContext], bool],
    effect: Effect,
    priority: int = 0,
) -> ComposedEffect:
    return _wrapping_effect(effect_id, name, ConditionalApplicable(condition), effect, priority)


def create_bound_based_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    bound_config: BoundConfig,
    impact_fn: Callable[[float, BoundResult], float],
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    """Add ``impact_fn(ratio, result)`` to ``stat_type``, driven by its own bounds."""

    return _single_stat_effect(
        effect_id,
        name,
        stat_type,
        BoundBasedImpact(stat_type, bound_config, impact_fn),
        AdditiveApplication(),
        stackable,
        priority,
    )


def create_bound_conditional_effect(
    effect_id: str,
    name: str,
    bound_stat_type: str,
    bound_config: BoundConfig,
    condition: Callable[[float, BoundResult], bool],
    effect: Effect,
    priority: int = 0,
) -> ComposedEffect:
    applicability = BoundBasedApplicable(bound_stat_type, bound_config, condition)
    return _wrapping_effect(effect_id, name, applicability, effect, priority)


def create_stat_threshold_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    op: str,
    threshold: float,
    effect: Effect,
    priority: int = 0,
) -> ComposedEffect:
    return _wrapping_effect(effect_id, name, StatThresholdApplicable(stat_type, op, threshold), effect, priority)


def create_bound_state_effect(
    effect_id: str,
    name: str,
    bound_stat_type: str,
    bound_config: BoundConfig,
    state_effects: Mapping[str, Effect],
    thresholds: BoundThresholds = DEFAULT_THRESHOLDS,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    """Apply whichever effect ``state_effects`` maps the current bound state to."""

    stat_types: list[str] = []
    for effect in state_effects.values():
        for stat_type in effect.stat_types:
            if stat_type not in stat_types:
                stat_types.append(stat_type)
    return (
        ComposedEffectBuilder(effect_id, name)
        .with_priority(priority)
        .with_stat_types(stat_types)
        .with_stackability_rules([StatStackability(stat_type, stackable) for stat_type in stat_types])
        .with_applicability(AlwaysApplicable())
        .with_impact(AdditiveImpact(0.0))
        .with_target(DelegateTarget())
        .with_application(StateDispatchApplication(bound_stat_type, bound_config, state_effects, thresholds))
        .build()
    )


def create_complex_effect(
    effect_id: str,
    name: str,
    apply_fn: Callable[[EffectContext, StatMap], None],
    reverse_fn: Callable[[EffectContext, StatMap], None],
    condition_fn: Callable[[EffectContext], bool] | None = None,
    stat_types: Iterable[str] = (),
    stackability_rules: Iterable[StatStackability] = (),
    priority: int = 0,
) -> ComposedEffect:
    stat_types = list(stat_types)
    applicability = ConditionalApplicable(condition_fn) if condition_fn else AlwaysApplicable()
    application = FunctionApplication(
        lambda ctx, stats, stat_type, impact: apply_fn(ctx, stats),
        lambda ctx, stats, stat_type, impact: reverse_fn(ctx, stats),
    )
    return (
        ComposedEffectBuilder(effect_id, name)
        .with_priority(priority)
        .with_stat_types(stat_types)
        .with_stackability_rules(stackability_rules)
        .with_applicability(applicability)
        .with_impact(AdditiveImpact(0.0))
        .with_target(DelegateTarget())
        .with_application(application)
        .build()
    )


# Randomised recipes -----------------------------------------------------------
def create_random_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    min_value: float,
    max_value: float,
    rng: random.Random | None = None,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    return _single_stat_effect(
        effect_id,
        name,
        stat_type,
        RandomImpact(min_value, max_value, rng),
        AdditiveApplication(),
        stackable,
        priority,
    )


def create_gaussian_random_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    min_value: float,
    max_value: float,
    mean: float,
    standard_deviation: float,
    rng: random.Random | None = None,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    return _single_stat_effect(
        effect_id,
        name,
        stat_type,
        GaussianRandomImpact(min_value, max_value, mean, standard_deviation, rng),
        AdditiveApplication(),
        stackable,
        priority,
    )


def create_weighted_random_effect(
    effect_id: str,
    name: str,
    choices: Iterable[WeightedChoice | tuple[str, float, float]],
    rng: random.Random | None = None,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    """Add one weighted pick per stat named in ``choices``.

    ``choices`` holds ``(stat_type, value, weight)`` entries; each stat draws
    among its own entries on every pass.
    """

    impact = WeightedRandomImpact(choices, rng)
    stat_types = list(dict.fromkeys(choice.stat_type for choice in impact.choices))
    return (
        ComposedEffectBuilder(effect_id, name)
        .with_priority(priority)
        .with_stat_types(stat_types)
        .with_stackability_rules([StatStackability(stat_type, stackable) for stat_type in stat_types])
        .with_applicability(AlwaysApplicable())
        .with_impact(impact)
        .with_target(MultipleStatTarget(stat_types))
        .with_application(AdditiveApplication())
        .build()
    )


def create_chance_effect(
    effect_id: str,
    name: str,
    stat_type: str,
    probability: float,
    modifier: Callable[[float], float],
    rng: random.Random | None = None,
    stackable: bool = True,
    priority: int = 0,
) -> ComposedEffect:
    """With ``probability``, replace the stat by ``modifier(current)``."""

    def impact(ctx: EffectContext, target_stat: str) -> float:
        current = ctx.current_stats.get(target_stat, 0.0)
        return modifier(current) - current

    return _single_stat_effect(
        effect_id,
        name,
        stat_type,
        FunctionImpact(impact),
        ChanceApplication(probability, AdditiveApplication(), rng),
        stackable,
        priority,
    )


def create_conditional_probability_effect(
    effect_id: str,
    name: str,
    effect: Effect,
    probability: float,
    rng: random.Random | None = None,
    priority: int = 0,
) -> ComposedEffect:
    return _wrapping_effect(effect_id, name, ChanceApplicable(probability, rng), effect, priority)
