"""Derive ratio, percentage and state information from a stat and its bounds.

Bounds are either fixed numbers or functions of the full stat map, so a
``health`` stat can be bounded by a ``max_health`` stat that effects modify.
Every function here is pure: the stat map passed in is never mutated and a
clamped value is only ever reported through :class:`BoundResult`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Mapping, Union

from entity_stats.constants import (
    BOUND_TOLERANCE,
    CRITICAL_RATIO,
    DEFAULT_MAX_BOUND,
    DEFAULT_MIN_BOUND,
    EMPTY_RATIO,
    FULL_RATIO,
    HIGH_RATIO,
    LOW_RATIO,
    STATE_CRITICAL,
    STATE_HIGH,
    STATE_LOW,
    STATE_MAXIMUM,
    STATE_MINIMUM,
    STATE_NORMAL,
)

BoundFunction = Callable[[Mapping[str, float]], float]
BoundSpec = Union[float, int, BoundFunction, None]


@dataclass(frozen=True, slots=True)
class BoundConfig:
    """Min/max envelope for a stat.

    ``min`` and ``max`` may be literals or callables receiving the full stat
    map. ``default_value`` is reported as the current value when the bounds
    evaluate to NaN.
    """

    min: BoundSpec = None
    max: BoundSpec = None
    clamp_to_bounds: bool = False
    default_value: float = 0.0


@dataclass(frozen=True, slots=True)
class BoundThresholds:
    critical: float = CRITICAL_RATIO
    low: float = LOW_RATIO
    high: float = HIGH_RATIO
    full: float = FULL_RATIO
    empty: float = EMPTY_RATIO


DEFAULT_THRESHOLDS = BoundThresholds()


@dataclass(frozen=True, slots=True)
class BoundResult:
    stat_type: str
    current_value: float
    min_bound: float
    max_bound: float
    is_clamped: bool
    config: BoundConfig


def _evaluate(spec: BoundSpec, default: float, stats: Mapping[str, float]) -> float:
    if spec is None:
        return default
    if callable(spec):
        return float(spec(stats))
    return float(spec)


def calculate_bounds(stat_type: str, config: BoundConfig, stats: Mapping[str, float]) -> BoundResult:
    current = float(stats.get(stat_type, 0.0))
    min_bound = _evaluate(config.min, DEFAULT_MIN_BOUND, stats)
    max_bound = _evaluate(config.max, DEFAULT_MAX_BOUND, stats)
    if math.isnan(min_bound) or math.isnan(max_bound):
        min_bound, max_bound = DEFAULT_MIN_BOUND, DEFAULT_MAX_BOUND
        current = float(config.default_value)
    if min_bound > max_bound:
        min_bound, max_bound = max_bound, min_bound

    is_clamped = False
    if config.clamp_to_bounds:
        clamped = max(min_bound, min(max_bound, current))
        is_clamped = clamped != current
        current = clamped

    return BoundResult(
        stat_type=stat_type,
        current_value=current,
        min_bound=min_bound,
        max_bound=max_bound,
        is_clamped=is_clamped,
        config=config,
    )


def calculate_multiple_bounds(
    configs: Mapping[str, BoundConfig],
    stats: Mapping[str, float],
) -> dict[str, BoundResult]:
    return {stat_type: calculate_bounds(stat_type, config, stats) for stat_type, config in configs.items()}


def calculate_ratio(result: BoundResult) -> float:
    span = result.max_bound - result.min_bound
    if span == 0:
        return 0.0
    return (result.current_value - result.min_bound) / span


def calculate_percentage(result: BoundResult) -> float:
    return calculate_ratio(result) * 100.0


def calculate_distance_from_min(result: BoundResult) -> float:
    return result.current_value - result.min_bound


def calculate_distance_from_max(result: BoundResult) -> float:
    return result.max_bound - result.current_value


def is_at_min(result: BoundResult, tolerance: float = BOUND_TOLERANCE) -> bool:
    return abs(result.current_value - result.min_bound) <= tolerance


def is_at_max(result: BoundResult, tolerance: float = BOUND_TOLERANCE) -> bool:
    return abs(result.current_value - result.max_bound) <= tolerance


def is_within_bounds(result: BoundResult, tolerance: float = BOUND_TOLERANCE) -> bool:
    return (result.min_bound - tolerance) <= result.current_value <= (result.max_bound + tolerance)


def is_below_min(result: BoundResult, tolerance: float = BOUND_TOLERANCE) -> bool:
    return result.current_value < result.min_bound - tolerance


def is_above_max(result: BoundResult, tolerance: float = BOUND_TOLERANCE) -> bool:
    return result.current_value > result.max_bound + tolerance


def get_state(
    result: BoundResult,
    thresholds: BoundThresholds = DEFAULT_THRESHOLDS,
    tolerance: float = BOUND_TOLERANCE,
) -> str:
    """Label the bound result; the checks run in a fixed precedence order."""

    ratio = calculate_ratio(result)
    if is_at_max(result, tolerance):
        return STATE_MAXIMUM
    if is_at_min(result, tolerance):
        return STATE_MINIMUM
    if ratio <= thresholds.critical:
        return STATE_CRITICAL
    if ratio <= thresholds.low:
        return STATE_LOW
    if ratio >= thresholds.high:
        return STATE_HIGH
    return STATE_NORMAL


def format_bound_result(
    result: BoundResult,
    include_values: bool = False,
    thresholds: BoundThresholds = DEFAULT_THRESHOLDS,
) -> str:
    formatted = f"{calculate_percentage(result):.1f}%"
    if include_values:
        formatted += f" ({result.current_value:g}/{result.max_bound:g})"
    if result.is_clamped:
        formatted += " [CLAMPED]"
    tag = _STATE_TAGS.get(get_state(result, thresholds))
    if tag:
        formatted += f" [{tag}]"
    return formatted


_STATE_TAGS = {
    STATE_MAXIMUM: "MAX",
    STATE_MINIMUM: "MIN",
    STATE_CRITICAL: "CRITICAL",
    STATE_LOW: "LOW",
    STATE_HIGH: "HIGH",
}


# Config helpers --------------------------------------------------------------
def simple_bound_config(
    min_value: float = DEFAULT_MIN_BOUND,
    max_value: float = DEFAULT_MAX_BOUND,
    clamp_to_bounds: bool = False,
    default_value: float = 0.0,
) -> BoundConfig:
    return BoundConfig(min=min_value, max=max_value, clamp_to_bounds=clamp_to_bounds, default_value=default_value)


def stat_based_bound_config(
    min_stat: str | None,
    max_stat: str,
    clamp_to_bounds: bool = False,
    default_value: float = 0.0,
) -> BoundConfig:
    """Bounds read from other stats, e.g. ``stat_based_bound_config(None, "max_health")``."""

    min_spec: BoundSpec = None
    if min_stat is not None:
        min_spec = lambda stats: stats.get(min_stat, DEFAULT_MIN_BOUND)  # noqa: E731
    return BoundConfig(
        min=min_spec,
        max=lambda stats: stats.get(max_stat, DEFAULT_MAX_BOUND),
        clamp_to_bounds=clamp_to_bounds,
        default_value=default_value,
    )


def function_based_bound_config(
    min_function: BoundFunction,
    max_function: BoundFunction,
    clamp_to_bounds: bool = False,
    default_value: float = 0.0,
) -> BoundConfig:
    return BoundConfig(min=min_function, max=max_function, clamp_to_bounds=clamp_to_bounds, default_value=default_value)


__all__ = [
    "BoundConfig",
    "BoundFunction",
    "BoundResult",
    "BoundThresholds",
    "DEFAULT_THRESHOLDS",
    "calculate_bounds",
    "calculate_distance_from_max",
    "calculate_distance_from_min",
    "calculate_multiple_bounds",
    "calculate_percentage",
    "calculate_ratio",
    "format_bound_result",
    "function_based_bound_config",
    "get_state",
    "is_above_max",
    "is_at_max",
    "is_at_min",
    "is_below_min",
    "is_within_bounds",
    "simple_bound_config",
    "stat_based_bound_config",
]
