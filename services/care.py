"""Feeding a pet from the bag."""
from __future__ import annotations

from typing import List, Tuple

from server.config import AUTOCOMPLETE_LIMIT
from .catalog import EDIBLE, ItemDefinition, require_item
from .errors import NotFoundError, TransactionFailed, ValidationError
from .inventory import BAG, InventoryEntry, InventoryService
from .pets import FeedResult, Pet, PetService


def feed_with_item(pets: PetService, inventory: InventoryService, user_id: str,
                   item_id: str) -> Tuple[Pet, ItemDefinition, FeedResult]:
    """Use one ``item_id`` from the bag on the user's active pet.

    The bag subtract and the pet update commit together or not at all.
    """
    pet = pets.get_active_pet(user_id)
    if pet is None:
        raise NotFoundError("You don't have a pet! Use `pet adopt` to adopt one.")
    item = require_item(item_id)
    if not item.has_trait(EDIBLE):
        raise ValidationError(f"{item.name} cannot be fed to pets!")

    plan = pets.plan_feed(user_id, pet.pet_id, item.hunger_restoration)
    try:
        results = pets.gateway.transact([
            inventory.remove_operation(user_id, item_id, 1, BAG),
            plan.operation,
        ])
    except TransactionFailed as exc:
        if exc.index == 0:
            raise inventory.insufficient_error(user_id, item_id, 1, BAG) from None
        if exc.index == 1:
            raise pets.pet_vanished(plan) from None
        raise
    inventory.settle_removal(user_id, item_id, BAG, results[0])
    return pet, item, pets.record_feed(plan)


def edible_bag_items(inventory: InventoryService, user_id: str,
                     limit: int = AUTOCOMPLETE_LIMIT) -> List[InventoryEntry]:
    return [e for e in inventory.get_compartment(user_id, BAG) if e.edible][:limit]
