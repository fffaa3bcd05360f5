import time
from typing import Callable

Clock = Callable[[], int]
"""Returns the current time in milliseconds since the epoch."""


def now_millis() -> int:
    return int(time.time() * 1000)
