import random

import pytest

from server.config import DAILY_COOLDOWN_MS, MAX_BAG_CAPACITY, MS_PER_HOUR, PETS_TABLE
from services.catalog import REWARD_POOL
from services.daily import LAST_CLAIM, DailyService
from services.errors import CapacityExceededError, OnCooldownError, format_duration
from services.inventory import BAG
from services.keys import profile_key

U = "user-1"


def _bag_total(inventory):
    return sum(e.quantity for e in inventory.get_compartment(U, BAG))


def test_first_claim_grants_reward_and_creates_profile(services, clock):
    daily = services.daily
    assert daily.get_last_claim(U) is None
    assert daily.remaining_cooldown(U) == 0

    reward = daily.claim(U)
    assert reward.id in REWARD_POOL
    assert services.inventory.quantity_of(U, reward.id, BAG) == 1
    assert services.gateway.get(PETS_TABLE, profile_key(U))[LAST_CLAIM] == clock.now


def test_cooldown_window(services, clock):
    daily = services.daily
    daily.claim(U)

    clock.advance(hours=19)
    with pytest.raises(OnCooldownError) as info:
        daily.claim(U)
    assert info.value.remaining_ms == MS_PER_HOUR
    assert "1h" in info.value.message
    assert _bag_total(services.inventory) == 1

    clock.advance(hours=1, ms=1000)
    daily.claim(U)
    assert _bag_total(services.inventory) == 2


def test_claim_keeps_existing_profile_fields(services, clock):
    pet_id = services.pets.adopt(U, "cat", "Tom")
    services.daily.claim(U)
    attrs = services.gateway.get(PETS_TABLE, profile_key(U))
    assert attrs["active_pet_id"] == pet_id
    assert attrs[LAST_CLAIM] == clock.now


def test_full_bag_blocks_claim_without_stamping(services, clock):
    inv = services.inventory
    for i in range(MAX_BAG_CAPACITY):
        inv.add_item(U, f"ITEM_{i}", 1, BAG)
    with pytest.raises(CapacityExceededError):
        services.daily.claim(U)
    assert services.daily.get_last_claim(U) is None


def test_concurrent_claim_loses_on_stamp(services, clock, monkeypatch):
    """A claimer that read a stale stamp is refused by the store."""
    daily = services.daily
    daily.claim(U)
    monkeypatch.setattr(daily, "get_last_claim", lambda user_id: None)
    with pytest.raises(OnCooldownError):
        daily.claim(U)
    assert _bag_total(services.inventory) == 1


def test_rewards_follow_injected_rng(services, clock):
    a = DailyService(services.gateway, services.inventory, clock=clock, rng=random.Random(3))
    b = DailyService(services.gateway, services.inventory, clock=clock, rng=random.Random(3))
    first = a.claim("alice")
    second = b.claim("bob")
    assert first.id == second.id


def test_format_duration():
    assert format_duration(DAILY_COOLDOWN_MS) == "20h 0s"
    assert format_duration(90 * 60 * 1000) == "1h 30m 0s"
    assert format_duration(59 * 1000) == "59s"
