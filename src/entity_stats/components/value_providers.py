from __future__ import annotations

from dataclasses import dataclass, field

from entity_stats.effects.active import ValueProvider


@dataclass(slots=True)
class ValueProviders:
    providers: dict[str, ValueProvider] = field(default_factory=dict)
