"""Effect contracts, strategy policies and ready-made effect recipes."""

from .base import (
    Effect,
    EffectContext,
    StatMap,
    StatStackability,
)
from .composed import ComposedEffect, ComposedEffectBuilder
from .factory import (
    create_additive_effect,
    create_bound_based_effect,
    create_bound_conditional_effect,
    create_bound_state_effect,
    create_chance_effect,
    create_complex_effect,
    create_conditional_effect,
    create_conditional_probability_effect,
    create_gaussian_random_effect,
    create_multiplicative_effect,
    create_percentage_effect,
    create_random_effect,
    create_set_value_effect,
    create_stat_threshold_effect,
    create_weighted_random_effect,
)
from .active import (
    ActiveEffect,
    BaseStatValueProvider,
    GenericGear,
    ValueRequestContext,
    ValueRequestResult,
    create_active_effect,
    create_base_stat_provider,
    create_gear,
)

__all__ = [
    "ActiveEffect",
    "BaseStatValueProvider",
    "ComposedEffect",
    "ComposedEffectBuilder",
    "Effect",
    "EffectContext",
    "GenericGear",
    "StatMap",
    "StatStackability",
    "ValueRequestContext",
    "ValueRequestResult",
    "create_active_effect",
    "create_additive_effect",
    "create_base_stat_provider",
    "create_bound_based_effect",
    "create_bound_conditional_effect",
    "create_bound_state_effect",
    "create_chance_effect",
    "create_complex_effect",
    "create_conditional_effect",
    "create_conditional_probability_effect",
    "create_gaussian_random_effect",
    "create_gear",
    "create_multiplicative_effect",
    "create_percentage_effect",
    "create_random_effect",
    "create_set_value_effect",
    "create_stat_threshold_effect",
    "create_weighted_random_effect",
]
