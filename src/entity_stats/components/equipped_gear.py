from __future__ import annotations

from dataclasses import dataclass, field

from entity_stats.effects.active import Gear


@dataclass(slots=True)
class EquippedGear:
    """Gear currently worn by an entity, keyed by slot.

    ``attached`` records, per slot, the passive effect ids that equipping
    actually added, so unequipping never detaches effects owned elsewhere.
    """

    slots: dict[str, Gear] = field(default_factory=dict)
    attached: dict[str, tuple[str, ...]] = field(default_factory=dict)
