"""Pet adoption, renaming and feeding.

A user has at most one pet. Adoption writes the pet record and the profile's
``active_pet_id`` in a single transaction whose profile leg only applies while
``active_pet_id`` is absent, so two concurrent adoptions cannot both succeed.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Tuple

from server.config import HUNGER_MAX, PET_CACHE_TTL_MS, PET_NAME_MAX_LEN, PETS_TABLE
from .cache import TTLCache
from .catalog import require_species
from .clock import Clock, now_ms
from .errors import (
    AlreadyHasPetError,
    ConditionFailed,
    NotFoundError,
    TransactionFailed,
    ValidationError,
)
from .gateway import (
    AttributeNotExists,
    Gateway,
    RecordExists,
    RecordNotExists,
    SetAttributes,
    TransactItem,
)
from .hunger import HungerReading, HungerState, clamp, hunger_state, reading
from .keys import pet_key, profile_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Profile:
    user_id: str
    active_pet_id: Optional[str] = None
    last_daily_reward_at: Optional[int] = None

    @classmethod
    def from_attributes(cls, user_id: str, attrs: dict) -> "Profile":
        return cls(
            user_id=user_id,
            active_pet_id=attrs.get("active_pet_id"),
            last_daily_reward_at=attrs.get("last_daily_reward_at"),
        )


@dataclass(frozen=True)
class Pet:
    user_id: str
    pet_id: str
    species_id: str
    name: str
    hunger_value: float
    last_fed_at: int
    adopted_at: int

    @classmethod
    def from_attributes(cls, user_id: str, pet_id: str, attrs: dict) -> "Pet":
        return cls(
            user_id=user_id,
            pet_id=pet_id,
            species_id=attrs["species_id"],
            name=attrs["name"],
            hunger_value=float(attrs["hunger_value"]),
            last_fed_at=int(attrs["last_fed_at"]),
            adopted_at=int(attrs["adopted_at"]),
        )

    def to_attributes(self) -> dict:
        return {
            "species_id": self.species_id,
            "name": self.name,
            "hunger_value": self.hunger_value,
            "last_fed_at": self.last_fed_at,
            "adopted_at": self.adopted_at,
        }


class FeedResult(NamedTuple):
    new_hunger_value: float
    new_state: HungerState


class FeedPlan(NamedTuple):
    pet: Pet
    before: float
    after: float
    now: int
    operation: TransactItem


def _cache_key(user_id: str, pet_id: str) -> Tuple[str, str]:
    return (user_id, pet_id)


def validate_name(name) -> str:
    if not isinstance(name, str):
        raise ValidationError("Pet name must be text.")
    name = name.strip()
    if not 1 <= len(name) <= PET_NAME_MAX_LEN:
        raise ValidationError(f"Pet name must be 1-{PET_NAME_MAX_LEN} characters.")
    return name


class PetService:
    def __init__(self, gateway: Gateway, cache: Optional[TTLCache] = None,
                 clock: Clock = now_ms, table: str = PETS_TABLE):
        self.gateway = gateway
        self.clock = clock
        self.cache = cache if cache is not None else TTLCache(PET_CACHE_TTL_MS, clock)
        self.table = table

    def get_profile(self, user_id: str) -> Optional[Profile]:
        attrs = self.gateway.get(self.table, profile_key(user_id))
        return Profile.from_attributes(user_id, attrs) if attrs is not None else None

    def get_pet(self, user_id: str, pet_id: str) -> Optional[Pet]:
        cached = self.cache.get(_cache_key(user_id, pet_id))
        if cached is not None:
            return cached
        attrs = self.gateway.get(self.table, pet_key(user_id, pet_id))
        if attrs is None:
            return None
        pet = Pet.from_attributes(user_id, pet_id, attrs)
        self.cache.set(_cache_key(user_id, pet_id), pet)
        return pet

    def get_active_pet(self, user_id: str) -> Optional[Pet]:
        profile = self.get_profile(user_id)
        if profile is None or not profile.active_pet_id:
            return None
        return self.get_pet(user_id, profile.active_pet_id)

    def adopt(self, user_id: str, species_id: str, name: str) -> str:
        """Create the user's pet and return its id."""
        name = validate_name(name)
        require_species(species_id)

        profile = self.get_profile(user_id)
        if profile is not None and profile.active_pet_id:
            raise AlreadyHasPetError(user_id)

        now = self.clock()
        pet = Pet(
            user_id=user_id,
            pet_id=str(uuid.uuid4()),
            species_id=species_id,
            name=name,
            hunger_value=float(HUNGER_MAX),
            last_fed_at=now,
            adopted_at=now,
        )
        try:
            self.gateway.transact([
                TransactItem(
                    self.table,
                    pet_key(user_id, pet.pet_id),
                    put=pet.to_attributes(),
                    condition=RecordNotExists(),
                ),
                TransactItem(
                    self.table,
                    profile_key(user_id),
                    update=SetAttributes({"active_pet_id": pet.pet_id}),
                    condition=AttributeNotExists("active_pet_id"),
                ),
            ])
        except TransactionFailed:
            raise AlreadyHasPetError(user_id) from None

        self.cache.set(_cache_key(user_id, pet.pet_id), pet)
        logger.info(
            "pet_adopted user_id=%s pet_id=%s species_id=%s",
            user_id,
            pet.pet_id,
            species_id,
        )
        return pet.pet_id

    def rename(self, user_id: str, pet_id: str, new_name: str) -> None:
        new_name = validate_name(new_name)
        try:
            attrs = self.gateway.conditional_update(
                self.table,
                pet_key(user_id, pet_id),
                SetAttributes({"name": new_name}),
                RecordExists(),
            )
        except ConditionFailed:
            self.cache.delete(_cache_key(user_id, pet_id))
            raise NotFoundError(f"Pet {pet_id} not found for user {user_id}") from None
        self.cache.set(_cache_key(user_id, pet_id), Pet.from_attributes(user_id, pet_id, attrs))
        logger.info("pet_renamed user_id=%s pet_id=%s", user_id, pet_id)

    def plan_feed(self, user_id: str, pet_id: str, hunger_restoration: float) -> FeedPlan:
        """Work out a feeding without writing it; ``plan.operation`` is the write."""
        if hunger_restoration <= 0:
            raise ValidationError("Hunger restoration must be positive.")
        pet = self.get_pet(user_id, pet_id)
        if pet is None:
            raise NotFoundError(f"Pet {pet_id} not found for user {user_id}")

        now = self.clock()
        before = reading(pet.hunger_value, pet.last_fed_at, now).value
        after = clamp(before + hunger_restoration)
        operation = TransactItem(
            self.table,
            pet_key(user_id, pet_id),
            update=SetAttributes({"hunger_value": after, "last_fed_at": now}),
            condition=RecordExists(),
        )
        return FeedPlan(pet, before, after, now, operation)

    def pet_vanished(self, plan: FeedPlan) -> NotFoundError:
        """The pet leg of a feed was rejected: drop the cached copy."""
        pet = plan.pet
        self.cache.delete(_cache_key(pet.user_id, pet.pet_id))
        return NotFoundError(f"Pet {pet.pet_id} not found for user {pet.user_id}")

    def record_feed(self, plan: FeedPlan) -> FeedResult:
        pet = plan.pet
        self.cache.set(
            _cache_key(pet.user_id, pet.pet_id),
            replace(pet, hunger_value=plan.after, last_fed_at=plan.now),
        )
        state = hunger_state(plan.after)
        logger.info(
            "pet_fed user_id=%s pet_id=%s before=%.2f after=%.2f state=%s",
            pet.user_id,
            pet.pet_id,
            plan.before,
            plan.after,
            state.value,
        )
        return FeedResult(plan.after, state)

    def feed(self, user_id: str, pet_id: str, hunger_restoration: float) -> FeedResult:
        plan = self.plan_feed(user_id, pet_id, hunger_restoration)
        try:
            self.gateway.transact([plan.operation])
        except TransactionFailed as exc:
            if exc.index is None:
                raise
            raise self.pet_vanished(plan) from None
        return self.record_feed(plan)

    def get_current_hunger(self, pet: Pet) -> HungerReading:
        return reading(pet.hunger_value, pet.last_fed_at, self.clock())


__all__ = [
    "Profile",
    "Pet",
    "FeedResult",
    "FeedPlan",
    "PetService",
    "validate_name",
]
