from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


def now_ms() -> float:
    """Wall-clock time in milliseconds, the unit used for every timestamp."""

    return time.time() * 1000.0


def resolve_clock(clock: Clock | None) -> Clock:
    return clock or now_ms
