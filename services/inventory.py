"""Bag and storage inventory.

Each compartment is one record holding ``item_counts`` (item id -> quantity)::

    pk: "User#<user_id>"   sk: "Inventory#bag" | "Inventory#storage"
    item_counts: {"OMELETTE_PLAIN": 5, "SHINY_PEBBLE": 1}

Capacity (distinct item types in the bag) and balances are enforced by
conditions evaluated by the store, so concurrent commands cannot overfill the
bag or drive a quantity below zero.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from server.config import MAX_BAG_CAPACITY, PETS_TABLE, STORAGE_PAGE_SIZE
from .catalog import ItemDefinition, get_item
from .errors import (
    CapacityExceededError,
    ConditionFailed,
    GatewayError,
    InsufficientQuantityError,
    SameCompartmentError,
    TransactionFailed,
    ValidationError,
)
from .gateway import (
    Gateway,
    IncrementMapEntry,
    MapEntryAtLeast,
    MapEntryNotPositive,
    MapHasRoomFor,
    RemoveMapEntry,
    TransactItem,
)
from .keys import inventory_key

logger = logging.getLogger(__name__)

BAG = "bag"
STORAGE = "storage"
COMPARTMENTS = (BAG, STORAGE)
ITEM_COUNTS = "item_counts"


@dataclass(frozen=True)
class InventoryEntry:
    item_id: str
    quantity: int
    definition: Optional[ItemDefinition]

    @property
    def name(self) -> str:
        return self.definition.name if self.definition else self.item_id

    @property
    def edible(self) -> bool:
        return bool(self.definition and self.definition.edible)


@dataclass(frozen=True)
class Page:
    items: List[InventoryEntry]
    total_pages: int
    current_page: int
    has_more: bool


def _check_kind(kind: str) -> None:
    if kind not in COMPARTMENTS:
        raise ValidationError(f"Unknown compartment: {kind}")


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError("Quantity must be a positive whole number.")


class InventoryService:
    def __init__(self, gateway: Gateway, table: str = PETS_TABLE, capacity: int = MAX_BAG_CAPACITY):
        self.gateway = gateway
        self.table = table
        self.capacity = capacity

    # reads

    def _counts(self, user_id: str, kind: str) -> Dict[str, int]:
        _check_kind(kind)
        attrs = self.gateway.get(self.table, inventory_key(user_id, kind)) or {}
        return {k: int(v) for k, v in (attrs.get(ITEM_COUNTS) or {}).items() if int(v) > 0}

    def get_compartment(self, user_id: str, kind: str) -> List[InventoryEntry]:
        """Return the compartment's items hydrated with catalog data."""
        entries = []
        for item_id, quantity in self._counts(user_id, kind).items():
            definition = get_item(item_id)
            if definition is None:
                logger.error(
                    "inventory_hydration_missing user_id=%s compartment=%s item_id=%s",
                    user_id,
                    kind,
                    item_id,
                )
            entries.append(InventoryEntry(item_id, quantity, definition))
        return entries

    def page_compartment(self, user_id: str, kind: str, page: int = 1,
                         page_size: int = STORAGE_PAGE_SIZE) -> Page:
        entries = self.get_compartment(user_id, kind)
        total_pages = math.ceil(len(entries) / page_size)
        current = max(1, int(page or 1))
        start = (current - 1) * page_size
        return Page(
            items=entries[start:start + page_size],
            total_pages=total_pages,
            current_page=current,
            has_more=current < total_pages,
        )

    def item_type_count(self, user_id: str, kind: str) -> int:
        """Number of distinct item ids held (not total quantity)."""
        return len(self._counts(user_id, kind))

    def quantity_of(self, user_id: str, item_id: str, kind: str) -> int:
        return self._counts(user_id, kind).get(item_id, 0)

    def has_item(self, user_id: str, item_id: str, quantity: int, kind: str) -> bool:
        held = self.quantity_of(user_id, item_id, kind)
        return held > 0 and held >= quantity

    def can_add(self, user_id: str, item_id: str, kind: str) -> bool:
        _check_kind(kind)
        if kind == STORAGE:
            return True
        counts = self._counts(user_id, kind)
        return item_id in counts or len(counts) < self.capacity

    # writes

    def add_operation(self, user_id: str, item_id: str, quantity: int, kind: str) -> TransactItem:
        """Transaction item adding ``quantity`` of ``item_id``; bag adds carry the room check."""
        _check_kind(kind)
        _check_quantity(quantity)
        condition = MapHasRoomFor(ITEM_COUNTS, item_id, self.capacity) if kind == BAG else None
        return TransactItem(
            self.table,
            inventory_key(user_id, kind),
            update=IncrementMapEntry(ITEM_COUNTS, item_id, quantity),
            condition=condition,
        )

    def capacity_error(self, user_id: str) -> CapacityExceededError:
        return CapacityExceededError(self.item_type_count(user_id, BAG), self.capacity)

    def add_item(self, user_id: str, item_id: str, quantity: int, kind: str) -> None:
        op = self.add_operation(user_id, item_id, quantity, kind)
        try:
            self.gateway.conditional_update(op.table, op.key, op.update, op.condition)
        except ConditionFailed:
            raise self.capacity_error(user_id) from None
        logger.info(
            "inventory_add user_id=%s item_id=%s quantity=%s compartment=%s",
            user_id,
            item_id,
            quantity,
            kind,
        )

    def remove_operation(self, user_id: str, item_id: str, quantity: int, kind: str) -> TransactItem:
        """Transaction item subtracting ``quantity``; only applies while that much is held."""
        _check_kind(kind)
        _check_quantity(quantity)
        return TransactItem(
            self.table,
            inventory_key(user_id, kind),
            update=IncrementMapEntry(ITEM_COUNTS, item_id, -quantity),
            condition=MapEntryAtLeast(ITEM_COUNTS, item_id, quantity),
        )

    def insufficient_error(self, user_id: str, item_id: str, quantity: int,
                           kind: str) -> InsufficientQuantityError:
        return InsufficientQuantityError(item_id, quantity, self.quantity_of(user_id, item_id, kind))

    def settle_removal(self, user_id: str, item_id: str, kind: str, attrs: dict) -> int:
        """Clean up an emptied key after a committed subtract; returns what is left."""
        remaining = int((attrs.get(ITEM_COUNTS) or {}).get(item_id, 0))
        if remaining <= 0:
            self._cleanup(user_id, item_id, kind)
            return 0
        return remaining

    def remove_item(self, user_id: str, item_id: str, quantity: int, kind: str) -> int:
        """Subtract ``quantity``; returns what is left (0 once the key is cleaned up)."""
        op = self.remove_operation(user_id, item_id, quantity, kind)
        try:
            attrs = self.gateway.conditional_update(op.table, op.key, op.update, op.condition)
        except ConditionFailed:
            raise self.insufficient_error(user_id, item_id, quantity, kind) from None
        logger.info(
            "inventory_remove user_id=%s item_id=%s quantity=%s compartment=%s",
            user_id,
            item_id,
            quantity,
            kind,
        )
        return self.settle_removal(user_id, item_id, kind, attrs)

    def move_item(self, user_id: str, item_id: str, quantity: int, from_kind: str, to_kind: str) -> None:
        """Move ``quantity`` between compartments in one transaction."""
        _check_kind(from_kind)
        _check_kind(to_kind)
        if from_kind == to_kind:
            raise SameCompartmentError(from_kind)
        _check_quantity(quantity)

        if to_kind == BAG and not self.can_add(user_id, item_id, BAG):
            raise self.capacity_error(user_id)

        items = [
            self.remove_operation(user_id, item_id, quantity, from_kind),
            self.add_operation(user_id, item_id, quantity, to_kind),
        ]
        try:
            results = self.gateway.transact(items)
        except TransactionFailed as exc:
            if exc.index == 0:
                raise self.insufficient_error(user_id, item_id, quantity, from_kind) from None
            if exc.index == 1:
                raise self.capacity_error(user_id) from None
            raise
        logger.info(
            "inventory_move user_id=%s item_id=%s quantity=%s from=%s to=%s",
            user_id,
            item_id,
            quantity,
            from_kind,
            to_kind,
        )
        self.settle_removal(user_id, item_id, from_kind, results[0])

    def _cleanup(self, user_id: str, item_id: str, kind: str) -> None:
        # The subtract already committed; a leftover zero reads as absent.
        try:
            self.gateway.conditional_update(
                self.table,
                inventory_key(user_id, kind),
                RemoveMapEntry(ITEM_COUNTS, item_id),
                MapEntryNotPositive(ITEM_COUNTS, item_id),
            )
        except GatewayError as exc:
            logger.warning(
                "inventory_cleanup_failed user_id=%s item_id=%s compartment=%s error=%s",
                user_id,
                item_id,
                kind,
                exc,
            )
            return
        logger.info(
            "inventory_cleanup user_id=%s item_id=%s compartment=%s",
            user_id,
            item_id,
            kind,
        )


__all__ = [
    "BAG",
    "STORAGE",
    "COMPARTMENTS",
    "InventoryEntry",
    "Page",
    "InventoryService",
]
