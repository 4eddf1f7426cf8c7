from __future__ import annotations

import logging

from esper import World

from entity_stats.bounds.calculator import (
    BoundResult,
    calculate_bounds,
    calculate_distance_from_max,
    calculate_distance_from_min,
    calculate_ratio,
    get_state,
    is_at_max,
    is_at_min,
    is_within_bounds,
)
from entity_stats.components.bound_watch import BoundEventConfig, BoundEventData, BoundWatch, BoundWatchList
from entity_stats.components.stat_block import StatBlock
from entity_stats.events.bus import (
    EVENT_BOUND_RATIO_CHANGED,
    EVENT_BOUND_STATE_CHANGED,
    EVENT_BOUND_THRESHOLD_CROSSED,
    EventBus,
)
from entity_stats.systems.stat_system import StatSystem
from entity_stats.utils.timing import Clock, resolve_clock

logger = logging.getLogger(__name__)


class BoundEventSystem:
    """Watches stats against their bounds and emits change events.

    Each watched stat remembers the ratio and state seen on the previous
    check. A check compares the fresh bound result against that memory for
    state changes, ratio changes and distance windows, then updates it. The
    three outcomes are independent and may all fire in one pass.
    """

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
        setattr(world, "bound_event_system", self)

    # Public API ---------------------------------------------------------
    def register(self, entity: int, config: BoundEventConfig) -> None:
        """Start watching ``config.stat_type``, seeding memory from current stats."""

        result = self._bound_result(entity, config)
        watch_list = self._ensure_watch_list(entity)
        watch_list.watches[config.stat_type] = BoundWatch(
            config=config,
            previous_ratio=calculate_ratio(result),
            previous_state=get_state(result, config.thresholds),
        )

    def unregister(self, entity: int, stat_type: str) -> bool:
        try:
            watch_list = self.world.component_for_entity(entity, BoundWatchList)
        except KeyError:
            return False
        return watch_list.watches.pop(stat_type, None) is not None

    def get_config(self, entity: int, stat_type: str) -> BoundEventConfig | None:
        try:
            watch = self.world.component_for_entity(entity, BoundWatchList).watches.get(stat_type)
        except KeyError:
            return None
        return watch.config if watch is not None else None

    def check(self, entity: int) -> None:
        try:
            watch_list = self.world.component_for_entity(entity, BoundWatchList)
        except KeyError:
            return
        block = self.world.component_for_entity(entity, StatBlock)
        stats = self.stat_system.get_current_stats(entity)
        for stat_type, watch in list(watch_list.watches.items()):
            self._check_watch(entity, block.entity_id, watch, stats)

    def check_all(self) -> None:
        for entity, _ in list(self.world.get_component(BoundWatchList)):
            self.check(entity)

    # Internal helpers ---------------------------------------------------
    def _check_watch(self, entity: int, entity_id: str, watch: BoundWatch, stats: dict[str, float]) -> None:
        config = watch.config
        result = calculate_bounds(config.stat_type, config.bound_config, stats)
        ratio = calculate_ratio(result)
        state = get_state(result, config.thresholds)
        data = BoundEventData(
            stat_type=config.stat_type,
            bound_result=result,
            ratio=ratio,
            previous_ratio=watch.previous_ratio,
            ratio_change=ratio - watch.previous_ratio,
            previous_state=watch.previous_state,
            current_state=state,
            distance_from_min=calculate_distance_from_min(result),
            distance_from_max=calculate_distance_from_max(result),
            is_at_min=is_at_min(result),
            is_at_max=is_at_max(result),
            is_within_bounds=is_within_bounds(result),
        )
        timestamp = self.clock()

        if state != watch.previous_state:
            logger.debug("%s %s state %s -> %s", entity_id, config.stat_type, watch.previous_state, state)
            self.event_bus.emit(
                EVENT_BOUND_STATE_CHANGED, entity=entity, entity_id=entity_id, data=data, timestamp=timestamp
            )
        if self._ratio_change_passes(config, data.ratio_change):
            self.event_bus.emit(
                EVENT_BOUND_RATIO_CHANGED, entity=entity, entity_id=entity_id, data=data, timestamp=timestamp
            )
        if self._within_distance_windows(config, data):
            self.event_bus.emit(
                EVENT_BOUND_THRESHOLD_CROSSED, entity=entity, entity_id=entity_id, data=data, timestamp=timestamp
            )

        watch.previous_ratio = ratio
        watch.previous_state = state

    @staticmethod
    def _ratio_change_passes(config: BoundEventConfig, change: float) -> bool:
        if change == 0 or abs(change) < config.ratio_change_threshold:
            return False
        if config.positive_change_only and change < 0:
            return False
        if config.negative_change_only and change > 0:
            return False
        return True

    @staticmethod
    def _within_distance_windows(config: BoundEventConfig, data: BoundEventData) -> bool:
        checks = []
        if config.min_distance_from_min is not None:
            checks.append(data.distance_from_min >= config.min_distance_from_min)
        if config.max_distance_from_min is not None:
            checks.append(data.distance_from_min <= config.max_distance_from_min)
        if config.min_distance_from_max is not None:
            checks.append(data.distance_from_max >= config.min_distance_from_max)
        if config.max_distance_from_max is not None:
            checks.append(data.distance_from_max <= config.max_distance_from_max)
        return bool(checks) and all(checks)

    def _bound_result(self, entity: int, config: BoundEventConfig) -> BoundResult:
        stats = self.stat_system.get_current_stats(entity)
        return calculate_bounds(config.stat_type, config.bound_config, stats)

    def _ensure_watch_list(self, entity: int) -> BoundWatchList:
        try:
            return self.world.component_for_entity(entity, BoundWatchList)
        except KeyError:
            watch_list = BoundWatchList()
            self.world.add_component(entity, watch_list)
            return watch_list
