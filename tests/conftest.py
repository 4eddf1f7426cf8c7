import sys, os

import pytest

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from entity_stats.events.bus import EventBus
from entity_stats.world import create_stat_entity, create_world


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.value = start

    def advance(self, amount: float) -> None:
        self.value += amount

    def __call__(self) -> float:
        return self.value


@pytest.fixture
def clock():
    return FakeClock(start=10_000.0)


@pytest.fixture
def stats_world(clock):
    bus = EventBus()
    world = create_world(bus, clock=clock)
    return bus, world


@pytest.fixture
def hero(stats_world):
    _bus, world = stats_world
    return create_stat_entity(world, "hero", {"health": 80.0, "max_health": 100.0, "strength": 10.0})
