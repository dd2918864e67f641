# services/daily.py
"""Daily reward claims.

The profile's ``last_daily_reward_at`` is the only state. A claim adds the
reward to the bag and stamps the profile in one transaction; the stamp is
conditioned on the previous value so two concurrent claims cannot both win.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from server.config import DAILY_COOLDOWN_MS, PETS_TABLE
from .catalog import ItemDefinition, random_reward
from .clock import Clock, now_ms
from .errors import OnCooldownError, TransactionFailed
from .gateway import AttributeEquals, Gateway, SetAttributes, TransactItem
from .inventory import BAG, InventoryService
from .keys import profile_key

logger = logging.getLogger(__name__)

LAST_CLAIM = "last_daily_reward_at"


class DailyService:
    def __init__(self, gateway: Gateway, inventory: InventoryService, clock: Clock = now_ms,
                 rng: Optional[random.Random] = None, table: str = PETS_TABLE,
                 cooldown_ms: int = DAILY_COOLDOWN_MS):
        self.gateway = gateway
        self.inventory = inventory
        self.clock = clock
        self.rng = rng or random.Random()
        self.table = table
        self.cooldown_ms = cooldown_ms

    def get_last_claim(self, user_id: str) -> Optional[int]:
        attrs = self.gateway.get(self.table, profile_key(user_id)) or {}
        last = attrs.get(LAST_CLAIM)
        return int(last) if last is not None else None

    def _remaining(self, last: Optional[int], now: int) -> int:
        if last is None:
            return 0
        return max(0, self.cooldown_ms - (now - last))

    def remaining_cooldown(self, user_id: str) -> int:
        return self._remaining(self.get_last_claim(user_id), self.clock())

    def claim(self, user_id: str) -> ItemDefinition:
        now = self.clock()
        last = self.get_last_claim(user_id)
        remaining = self._remaining(last, now)
        if remaining > 0:
            raise OnCooldownError(remaining)

        reward = random_reward(self.rng)
        try:
            self.gateway.transact([
                self.inventory.add_operation(user_id, reward.id, 1, BAG),
                TransactItem(
                    self.table,
                    profile_key(user_id),
                    update=SetAttributes({LAST_CLAIM: now}),
                    condition=AttributeEquals(LAST_CLAIM, last),
                ),
            ])
        except TransactionFailed as exc:
            if exc.index == 0:
                raise self.inventory.capacity_error(user_id) from None
            if exc.index == 1:
                raise OnCooldownError(self.remaining_cooldown(user_id)) from None
            raise
        logger.info("daily_claimed user_id=%s item_id=%s", user_id, reward.id)
        return reward
