from __future__ import annotations

from dataclasses import dataclass, field

from entity_stats.bounds.calculator import DEFAULT_THRESHOLDS, BoundConfig, BoundResult, BoundThresholds


@dataclass(frozen=True, slots=True)
class BoundEventConfig:
    """Subscription describing which bound events to raise for one stat.

    Distance windows left as ``None`` are not checked. A threshold-crossed
    event needs at least one window configured.
    """

    stat_type: str
    bound_config: BoundConfig
    ratio_change_threshold: float = 0.0
    positive_change_only: bool = False
    negative_change_only: bool = False
    min_distance_from_min: float | None = None
    max_distance_from_min: float | None = None
    min_distance_from_max: float | None = None
    max_distance_from_max: float | None = None
    thresholds: BoundThresholds = DEFAULT_THRESHOLDS


@dataclass(frozen=True, slots=True)
class BoundEventData:
    stat_type: str
    bound_result: BoundResult
    ratio: float
    previous_ratio: float
    ratio_change: float
    previous_state: str
    current_state: str
    distance_from_min: float
    distance_from_max: float
    is_at_min: bool
    is_at_max: bool
    is_within_bounds: bool


@dataclass(slots=True)
class BoundWatch:
    config: BoundEventConfig
    previous_ratio: float
    previous_state: str


@dataclass(slots=True)
class BoundWatchList:
    watches: dict[str, BoundWatch] = field(default_factory=dict)
