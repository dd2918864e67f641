from typing import Any, Dict, List

from executors import table, text
from executors.pet import hunger_label
from server.config import MAX_BAG_CAPACITY
from services.care import feed_with_item
from services.errors import ValidationError
from services.inventory import BAG, STORAGE


def _quantity(args: List[str], index: int) -> int:
    if len(args) <= index:
        return 1
    try:
        return int(args[index])
    except ValueError:
        raise ValidationError(f"Quantity must be a number, got {args[index]!r}") from None


def _page(args: List[str], index: int) -> int:
    if len(args) <= index:
        return 1
    try:
        page = int(args[index])
    except ValueError:
        raise ValidationError(f"Page must be a number, got {args[index]!r}") from None
    if page < 1:
        raise ValidationError("Page must be 1 or more.")
    return page


def _rows(entries) -> List[Dict[str, Any]]:
    return [{"item": e.item_id, "name": e.name, "qty": e.quantity} for e in entries]


def bag_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    services, uid = ctx["services"], ctx["user_id"]
    args = cmd.get("args", [])
    action = args[0].lower() if args else "view"

    if action == "view":
        entries = services.inventory.get_compartment(uid, BAG)
        if not entries:
            return [text("🎒 Your bag is empty.")]
        return [
            text(f"🎒 Bag ({len(entries)}/{MAX_BAG_CAPACITY})"),
            table(_rows(entries)),
        ]

    if len(args) < 2:
        raise ValidationError(f"Usage: pet bag {action} <item> [quantity]")
    item_id = args[1]

    if action == "store":
        qty = _quantity(args, 2)
        services.inventory.move_item(uid, item_id, qty, BAG, STORAGE)
        return [text(f"📦 Moved {qty}x {item_id} to storage.")]

    if action == "use":
        pet, item, result = feed_with_item(services.pets, services.inventory, uid, item_id)
        return [
            text(f"🍽️ You fed {pet.name} a **{item.name}**!"),
            text(f"Current Hunger: {hunger_label(result.new_state)}"),
        ]

    raise ValidationError(f"Unknown bag action: {action}")


def storage_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    services, uid = ctx["services"], ctx["user_id"]
    args = cmd.get("args", [])
    action = args[0].lower() if args else "view"

    if action == "view":
        page_no = _page(args, 1)
        page = services.inventory.page_compartment(uid, STORAGE, page_no)
        if not page.items:
            return [text("🗄️ Your storage is empty." if page.total_pages == 0 else "No items on that page.")]
        return [
            text(f"🗄️ Storage (page {page.current_page}/{page.total_pages})"),
            table(_rows(page.items)),
        ]

    if action == "withdraw":
        if len(args) < 2:
            raise ValidationError("Usage: pet storage withdraw <item> [quantity]")
        item_id, qty = args[1], _quantity(args, 2)
        services.inventory.move_item(uid, item_id, qty, STORAGE, BAG)
        return [text(f"🎒 Moved {qty}x {item_id} to your bag.")]

    raise ValidationError(f"Unknown storage action: {action}")


__all__ = [
    "bag_cmd",
    "storage_cmd",
]
