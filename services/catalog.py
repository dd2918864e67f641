"""Static item and species catalogs.

Both registries are validated when the module is imported; lookups return
``None`` for unknown ids and the ``require_*`` helpers raise ``NotFoundError``.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from .errors import NotFoundError

EDIBLE = "edible"
TRAITS = frozenset({EDIBLE})


@dataclass(frozen=True)
class ItemDefinition:
    id: str
    name: str
    description: str
    traits: FrozenSet[str] = field(default_factory=frozenset)
    hunger_restoration: Optional[int] = None

    def __post_init__(self):
        unknown = set(self.traits) - TRAITS
        if unknown:
            raise ValueError(f"{self.id}: unknown traits {sorted(unknown)}")
        if EDIBLE in self.traits and not self.hunger_restoration:
            raise ValueError(f"{self.id}: edible items need hunger_restoration")

    def has_trait(self, trait: str) -> bool:
        return trait in self.traits

    @property
    def edible(self) -> bool:
        return EDIBLE in self.traits


@dataclass(frozen=True)
class SpeciesDefinition:
    id: str
    name: str
    category: str


def _index(entries):
    out = {}
    for entry in entries:
        if entry.id in out:
            raise ValueError(f"duplicate catalog id {entry.id}")
        out[entry.id] = entry
    return out


ITEM_CATALOG: Dict[str, ItemDefinition] = _index([
    ItemDefinition(
        id="OMELETTE_PLAIN",
        name="Plain Omelette",
        description="Simple and classic",
        traits=frozenset({EDIBLE}),
        hunger_restoration=20,
    ),
    ItemDefinition(
        id="OMELETTE_MUSHROOM",
        name="Mushroom Omelette",
        description="Savory and subtle",
        traits=frozenset({EDIBLE}),
        hunger_restoration=20,
    ),
    ItemDefinition(
        id="OMELETTE_PEPPER",
        name="Pepper Omelette",
        description="Vibrant and zesty",
        traits=frozenset({EDIBLE}),
        hunger_restoration=20,
    ),
    ItemDefinition(
        id="SHINY_PEBBLE",
        name="Shiny Pebble",
        description="Pretty, but not food",
    ),
])

# Daily reward pool
REWARD_POOL: List[str] = ["OMELETTE_PLAIN", "OMELETTE_MUSHROOM", "OMELETTE_PEPPER"]

SPECIES_CATALOG: Dict[str, SpeciesDefinition] = _index([
    SpeciesDefinition(id="seedling", name="Seedling", category="plant"),
    SpeciesDefinition(id="cat", name="Cat", category="mammal"),
    SpeciesDefinition(id="dog", name="Dog", category="mammal"),
    SpeciesDefinition(id="bird", name="Bird", category="avian"),
    SpeciesDefinition(id="rabbit", name="Rabbit", category="mammal"),
    SpeciesDefinition(id="hamster", name="Hamster", category="mammal"),
])

if not set(REWARD_POOL) <= set(ITEM_CATALOG):
    raise ValueError("reward pool references unknown items")


def get_item(item_id: str) -> Optional[ItemDefinition]:
    return ITEM_CATALOG.get(item_id)


def require_item(item_id: str) -> ItemDefinition:
    item = ITEM_CATALOG.get(item_id)
    if item is None:
        raise NotFoundError(f"Unknown item: {item_id}")
    return item


def get_species(species_id: str) -> Optional[SpeciesDefinition]:
    return SPECIES_CATALOG.get(species_id)


def require_species(species_id: str) -> SpeciesDefinition:
    species = SPECIES_CATALOG.get(species_id)
    if species is None:
        raise NotFoundError(f"Unknown species: {species_id}")
    return species


def all_species() -> List[SpeciesDefinition]:
    return list(SPECIES_CATALOG.values())


def random_reward(rng: random.Random | None = None) -> ItemDefinition:
    """Pick a reward item uniformly from :data:`REWARD_POOL`."""
    rng = rng or random
    return ITEM_CATALOG[rng.choice(REWARD_POOL)]


__all__ = [
    "EDIBLE",
    "ItemDefinition",
    "SpeciesDefinition",
    "ITEM_CATALOG",
    "SPECIES_CATALOG",
    "REWARD_POOL",
    "get_item",
    "require_item",
    "get_species",
    "require_species",
    "all_species",
    "random_reward",
]
