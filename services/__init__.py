"""Pet, inventory, daily reward and timezone services."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .clock import Clock, now_ms
from .daily import DailyService
from .gateway import Gateway
from .inventory import InventoryService
from .pets import PetService
from .timezones import TimezoneService


@dataclass
class Services:
    gateway: Gateway
    pets: PetService
    inventory: InventoryService
    daily: DailyService
    timezones: TimezoneService


def build_services(gateway: Gateway, clock: Clock = now_ms,
                   rng: Optional[random.Random] = None) -> Services:
    inventory = InventoryService(gateway)
    return Services(
        gateway=gateway,
        pets=PetService(gateway, clock=clock),
        inventory=inventory,
        daily=DailyService(gateway, inventory, clock=clock, rng=rng),
        timezones=TimezoneService(gateway, clock=clock),
    )


__all__ = ["Services", "build_services"]
