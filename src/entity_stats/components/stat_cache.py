from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CachedStats:
    stats: dict[str, float]
    computed_at: float
    effect_ids: tuple[str, ...] = ()


@dataclass(slots=True)
class CachedActivity:
    active: bool
    checked_at: float


@dataclass(slots=True)
class StatCache:
    """Memoised calculation results for one entity."""

    entries: dict[str, CachedStats] = field(default_factory=dict)
    activity: dict[str, CachedActivity] = field(default_factory=dict)
    calculations: int = 0

    def clear(self) -> None:
        self.entries.clear()
        self.activity.clear()
