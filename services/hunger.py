# services/hunger.py
"""
Hunger model
- Hunger decays linearly from the value stored at the last feeding.
- Pure functions only; callers pass ``now`` in epoch milliseconds.
"""
from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from server.config import HUNGER_DECAY_PER_HOUR, HUNGER_MAX, MS_PER_HOUR


class HungerState(str, Enum):
    FULL = "full"
    SATISFIED = "satisfied"
    FINE = "fine"
    HUNGRY = "hungry"
    STARVING = "starving"


class HungerReading(NamedTuple):
    value: float
    state: HungerState


# (exclusive lower bound, state); a value equal to a bound falls to the next band
_BANDS = (
    (80, HungerState.FULL),
    (60, HungerState.SATISFIED),
    (40, HungerState.FINE),
    (20, HungerState.HUNGRY),
)


def clamp(value: float) -> float:
    return max(0.0, min(float(HUNGER_MAX), float(value)))


def current_hunger(base_value: float, last_fed_at: float, now: float) -> float:
    """Hunger at ``now`` given the value stored at ``last_fed_at``."""
    hours = (now - last_fed_at) / MS_PER_HOUR
    return clamp(base_value - HUNGER_DECAY_PER_HOUR * hours)


def hunger_state(value: float) -> HungerState:
    for bound, state in _BANDS:
        if value > bound:
            return state
    return HungerState.STARVING


def reading(base_value: float, last_fed_at: float, now: float) -> HungerReading:
    value = current_hunger(base_value, last_fed_at, now)
    return HungerReading(value, hunger_state(value))
