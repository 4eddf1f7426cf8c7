"""Systems operating on stat entities."""

from .applicator_system import (
    ApplicatorSystem,
    EffectApplicator,
    bound_ratio_applicator,
    bound_state_applicator,
    percentage_threshold_applicator,
    stat_threshold_applicator,
)
from .bound_event_system import BoundEventSystem
from .gear_system import GearSystem
from .stat_system import StatFrame, StatSystem
from .value_resolution_system import ValueResolutionSystem

__all__ = [
    "ApplicatorSystem",
    "BoundEventSystem",
    "EffectApplicator",
    "GearSystem",
    "StatFrame",
    "StatSystem",
    "ValueResolutionSystem",
    "bound_ratio_applicator",
    "bound_state_applicator",
    "percentage_threshold_applicator",
    "stat_threshold_applicator",
]
