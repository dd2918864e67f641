"""Pet command executors."""
from __future__ import annotations

from typing import Any, Dict, List

from executors import table, text
from services.care import edible_bag_items, feed_with_item
from services.catalog import all_species, get_species
from services.errors import NotFoundError, ValidationError
from services.hunger import HungerState

HUNGER_STATE_EMOJIS = {
    HungerState.FULL: "🟢",
    HungerState.SATISFIED: "🟡",
    HungerState.FINE: "🟠",
    HungerState.HUNGRY: "🟠",
    HungerState.STARVING: "🔴",
}

MS_PER_DAY = 24 * 60 * 60 * 1000


def hunger_label(state: HungerState) -> str:
    return f"{HUNGER_STATE_EMOJIS.get(state, '⚪')} {state.value.capitalize()}"


def _require_pet(ctx: Dict[str, Any]):
    pet = ctx["services"].pets.get_active_pet(ctx["user_id"])
    if pet is None:
        raise NotFoundError("You don't have a pet yet! Use `pet adopt` to adopt one.")
    return pet


def species_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    rows = [{"id": s.id, "name": s.name, "type": s.category} for s in all_species()]
    return [table(rows)]


def adopt_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    args = cmd.get("args", [])
    if len(args) < 2:
        raise ValidationError("Usage: pet adopt <species> <name>")
    species_id, name = args[0].lower(), " ".join(args[1:])
    pets = ctx["services"].pets
    pets.adopt(ctx["user_id"], species_id, name)
    species = get_species(species_id)
    return [text(f"🎉 You've adopted a **{species.name}** named **{name.strip()}**!")]


def info_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    pets = ctx["services"].pets
    pet = _require_pet(ctx)
    species = get_species(pet.species_id)
    if species is None:
        raise NotFoundError("Your pet's species data is invalid.")
    hunger = pets.get_current_hunger(pet)
    days = (pets.clock() - pet.adopted_at) // MS_PER_DAY
    return [
        text(f"**{pet.name}**"),
        table([{
            "species": species.name,
            "hunger": hunger_label(hunger.state),
            "age": f"{days} days",
        }]),
    ]


def feed_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    services = ctx["services"]
    args = cmd.get("args", [])
    if not args:
        # no item given: list what could be fed
        entries = edible_bag_items(services.inventory, ctx["user_id"])
        if not entries:
            return [text("You have nothing edible in your bag.")]
        return [table([
            {"item": e.item_id, "name": f"{e.name} (x{e.quantity})"} for e in entries
        ])]
    pet, item, result = feed_with_item(services.pets, services.inventory, ctx["user_id"], args[0])
    return [
        text(f"🍽️ You fed {pet.name} a **{item.name}**!"),
        text(f"Current Hunger: {hunger_label(result.new_state)}"),
    ]


def rename_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    args = cmd.get("args", [])
    if not args:
        raise ValidationError("Usage: pet rename <name>")
    pet = _require_pet(ctx)
    new_name = " ".join(args)
    ctx["services"].pets.rename(ctx["user_id"], pet.pet_id, new_name)
    return [text(f"✏️ {pet.name} is now called **{new_name.strip()}**.")]


def daily_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    _require_pet(ctx)
    reward = ctx["services"].daily.claim(ctx["user_id"])
    return [
        text(f"🎁 Daily Reward Claimed! You received a **{reward.name}**!"),
        table([{"item": reward.name, "description": reward.description}]),
    ]


__all__ = [
    "species_cmd",
    "adopt_cmd",
    "info_cmd",
    "feed_cmd",
    "rename_cmd",
    "daily_cmd",
]
