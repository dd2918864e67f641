import random

import pytest

from services.catalog import (
    REWARD_POOL,
    ItemDefinition,
    get_item,
    get_species,
    random_reward,
    require_item,
    require_species,
)
from services.errors import NotFoundError


def test_lookup_returns_none_for_unknown_ids():
    assert get_item("NOPE") is None
    assert get_species("dragon") is None


def test_require_raises_not_found():
    with pytest.raises(NotFoundError):
        require_item("NOPE")
    with pytest.raises(NotFoundError):
        require_species("dragon")


def test_edible_items_need_restoration():
    with pytest.raises(ValueError):
        ItemDefinition(id="X", name="X", description="", traits=frozenset({"edible"}))


def test_known_entries():
    assert require_item("OMELETTE_PLAIN").hunger_restoration == 20
    assert require_item("OMELETTE_PLAIN").edible
    assert not require_item("SHINY_PEBBLE").edible
    assert require_species("seedling").category == "plant"


def test_random_reward_comes_from_pool():
    rng = random.Random(1)
    for _ in range(20):
        assert random_reward(rng).id in REWARD_POOL
