from dataclasses import dataclass, field


@dataclass(slots=True)
class StatBlock:
    """Identity and base stats of an entity; effects never write here."""

    entity_id: str
    base: dict[str, float] = field(default_factory=dict)
