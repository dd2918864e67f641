from time import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time() * 1000)
