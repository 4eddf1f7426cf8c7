from __future__ import annotations

import logging

from esper import World

from entity_stats.components.equipped_gear import EquippedGear
from entity_stats.components.stat_block import StatBlock
from entity_stats.constants import DEFAULT_GEAR_SLOT
from entity_stats.effects.active import Gear
from entity_stats.events.bus import EVENT_GEAR_EQUIPPED, EVENT_GEAR_UNEQUIPPED, EventBus
from entity_stats.systems.stat_system import StatSystem
from entity_stats.utils.timing import Clock, resolve_clock

logger = logging.getLogger(__name__)


class GearSystem:
    """Slot bookkeeping for equipped gear and its passive effects."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        stat_system: StatSystem | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.stat_system = stat_system or getattr(world, "stat_system")
        self.clock = resolve_clock(clock)
        setattr(world, "gear_system", self)

    def equip_gear(self, entity: int, gear: Gear, slot: str | None = None) -> str:
        """Equip ``gear`` and return the slot it went into.

        Gear already in that slot is unequipped first. Passive effects whose id
        is already attached are left alone and stay owned by whoever added them.
        """

        block = self.world.component_for_entity(entity, StatBlock)
        gear_slot = slot or getattr(gear, "slot", None) or DEFAULT_GEAR_SLOT
        equipped = self._ensure_equipped(entity)
        if gear_slot in equipped.slots:
            self.unequip_gear(entity, gear_slot)
        equipped.slots[gear_slot] = gear

        attached: list[str] = []
        for effect in gear.get_passive_effects():
            if self.stat_system.has_effect(entity, effect.id):
                logger.debug("Passive %s of %s already attached to %s; skipped", effect.id, gear.id, block.entity_id)
                continue
            if self.stat_system.add_effect(entity, effect):
                attached.append(effect.id)
        equipped.attached[gear_slot] = tuple(attached)
        logger.debug("Equipped %s on %s in slot %s", gear.id, block.entity_id, gear_slot)
        self.event_bus.emit(
            EVENT_GEAR_EQUIPPED,
            entity=entity,
            entity_id=block.entity_id,
            gear_id=gear.id,
            gear_name=gear.name,
            slot=gear_slot,
            passive_effects_applied=len(attached),
            timestamp=self.clock(),
        )
        return gear_slot

    def unequip_gear(self, entity: int, slot: str) -> Gear | None:
        block = self.world.component_for_entity(entity, StatBlock)
        equipped = self._ensure_equipped(entity)
        gear = equipped.slots.pop(slot, None)
        if gear is None:
            return None

        removed = 0
        for effect_id in equipped.attached.pop(slot, ()):
            if self.stat_system.remove_effect(entity, effect_id, reason="unequipped"):
                removed += 1
        logger.debug("Unequipped %s from %s slot %s", gear.id, block.entity_id, slot)
        self.event_bus.emit(
            EVENT_GEAR_UNEQUIPPED,
            entity=entity,
            entity_id=block.entity_id,
            gear_id=gear.id,
            gear_name=gear.name,
            slot=slot,
            passive_effects_removed=removed,
            timestamp=self.clock(),
        )
        return gear

    def get_equipped_gear(self, entity: int, slot: str) -> Gear | None:
        return self._ensure_equipped(entity).slots.get(slot)

    def get_all_equipped_gear(self, entity: int) -> dict[str, Gear]:
        return dict(self._ensure_equipped(entity).slots)

    def _ensure_equipped(self, entity: int) -> EquippedGear:
        try:
            return self.world.component_for_entity(entity, EquippedGear)
        except KeyError:
            equipped = EquippedGear()
            self.world.add_component(entity, equipped)
            return equipped
