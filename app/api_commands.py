"""JSON endpoints for the chat layer.

``POST /api/commands`` runs one command line for a user and returns the
frames to render; ``POST /api/mentions`` answers a chat message that
mentions users with their local times. The ``GET`` routes are read-only
views used by dashboards.
"""
from typing import Dict, List

from flask import Blueprint, jsonify, request
from pydantic import BaseModel, ConfigDict, Field, ValidationError, constr

import command_router as router
from services.errors import (
    AlreadyExistsError,
    CapacityExceededError,
    InsufficientQuantityError,
    NotFoundError,
    OnCooldownError,
    PetBotError,
)
from services.inventory import BAG, STORAGE

from . import get_services

bp = Blueprint("commands_api", __name__, url_prefix="/api")


# ---- Validation schema ----------------------------------------------------
class CommandSchema(BaseModel):
    user_id: constr(min_length=1, max_length=64)
    line: constr(min_length=1, max_length=router.MAX_LINE_LEN)
    member_ids: List[constr(min_length=1, max_length=64)] = Field(default_factory=list, max_length=1000)
    model_config = ConfigDict(extra="forbid")


class MentionSchema(BaseModel):
    user_id: constr(min_length=1, max_length=64)
    mentioned_ids: List[constr(min_length=1, max_length=64)] = Field(max_length=100)
    display_names: Dict[constr(max_length=64), constr(max_length=100)] = Field(default_factory=dict)
    model_config = ConfigDict(extra="forbid")


def _status_for(err: PetBotError) -> int:
    if isinstance(err, NotFoundError):
        return 404
    if isinstance(err, (AlreadyExistsError, CapacityExceededError,
                        InsufficientQuantityError, OnCooldownError)):
        return 409
    return 400


@bp.errorhandler(PetBotError)
def _pet_error(err: PetBotError):
    return jsonify(error=err.message, code=err.code), _status_for(err)


@bp.post("/commands")
def run_command():
    data = request.get_json(force=True, silent=True)
    if data is None:
        return jsonify(error="JSON body required"), 400
    try:
        payload = CommandSchema.model_validate(data)
    except ValidationError as e:
        return jsonify(error=e.errors(include_url=False)), 400
    frames = router.route(
        payload.line,
        payload.user_id,
        get_services(),
        member_ids=payload.member_ids,
    )
    return jsonify({"user_id": payload.user_id, "frames": frames})


@bp.post("/mentions")
def run_mentions():
    data = request.get_json(force=True, silent=True)
    if data is None:
        return jsonify(error="JSON body required"), 400
    try:
        payload = MentionSchema.model_validate(data)
    except ValidationError as e:
        return jsonify(error=e.errors(include_url=False)), 400
    frames = router.route_mentions(
        payload.mentioned_ids,
        get_services(),
        display_names=payload.display_names,
    )
    return jsonify({"user_id": payload.user_id, "frames": frames})


@bp.get("/users/<user_id>/pet")
def get_pet(user_id: str):
    pets = get_services().pets
    pet = pets.get_active_pet(user_id)
    if pet is None:
        raise NotFoundError("No pet adopted")
    hunger = pets.get_current_hunger(pet)
    return jsonify({
        "pet_id": pet.pet_id,
        "name": pet.name,
        "species_id": pet.species_id,
        "hunger": round(hunger.value, 2),
        "hunger_state": hunger.state.value,
        "adopted_at": pet.adopted_at,
        "last_fed_at": pet.last_fed_at,
    })


def _serialize(entries):
    return [
        {
            "item_id": e.item_id,
            "name": e.name,
            "quantity": e.quantity,
            "description": e.definition.description if e.definition else None,
        }
        for e in entries
    ]


@bp.get("/users/<user_id>/bag")
def get_bag(user_id: str):
    inventory = get_services().inventory
    entries = inventory.get_compartment(user_id, BAG)
    return jsonify({
        "user_id": user_id,
        "capacity": inventory.capacity,
        "items": _serialize(entries),
    })


@bp.get("/users/<user_id>/storage")
def get_storage(user_id: str):
    page_no = request.args.get("page", default=1, type=int)
    page = get_services().inventory.page_compartment(user_id, STORAGE, page_no)
    return jsonify({
        "user_id": user_id,
        "items": _serialize(page.items),
        "current_page": page.current_page,
        "total_pages": page.total_pages,
        "has_more": page.has_more,
    })
