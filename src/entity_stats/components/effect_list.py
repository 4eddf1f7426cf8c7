from __future__ import annotations

from dataclasses import dataclass, field

from entity_stats.effects.base import Effect


@dataclass(slots=True)
class EffectTiming:
    effect_id: str
    applied_at: float
    duration: float | None = None
    expires_at: float | None = None


@dataclass(slots=True)
class EffectList:
    """Effects attached to an owner, keyed by effect id.

    ``sequence`` records the order effects were first attached and breaks
    priority ties during the calculation pass.
    """

    effects: dict[str, Effect] = field(default_factory=dict)
    timings: dict[str, EffectTiming] = field(default_factory=dict)
    sequence: dict[str, int] = field(default_factory=dict)
    next_sequence: int = 0
