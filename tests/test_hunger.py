import pytest

from services.hunger import HungerState, current_hunger, hunger_state, reading

T = 1_700_000_000_000
HOUR = 3_600_000


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, HungerState.STARVING),
        (20, HungerState.STARVING),
        (20.0001, HungerState.HUNGRY),
        (40, HungerState.HUNGRY),
        (60, HungerState.FINE),
        (60.0001, HungerState.SATISFIED),
        (80, HungerState.SATISFIED),
        (80.0001, HungerState.FULL),
        (100, HungerState.FULL),
    ],
)
def test_state_bands_put_boundaries_in_lower_band(value, expected):
    assert hunger_state(value) is expected


def test_decay_one_point_per_hour():
    assert current_hunger(100, T, T) == 100
    assert current_hunger(100, T, T + HOUR) == 99
    assert current_hunger(100, T, T + 65 * HOUR) == 35


def test_decay_floors_at_zero():
    assert current_hunger(0, T, T + 5 * HOUR) == 0
    assert current_hunger(10, T, T + 1000 * HOUR) == 0


def test_value_clamped_to_max():
    assert current_hunger(150, T, T) == 100


def test_reading_combines_value_and_state():
    value, state = reading(100, T, T + 5 * HOUR)
    assert value == 95
    assert state is HungerState.FULL
