"""Shared pet/inventory constants."""
import os

# Logical tables inside the ``records`` store
PETS_TABLE = os.environ.get("PETS_TABLE", "xiuh-pets")
TIMEZONE_TABLE = os.environ.get("TIMEZONE_TABLE", "xiuh-timezones")

# Inventory
MAX_BAG_CAPACITY = 50          # distinct item types, not total quantity
STORAGE_PAGE_SIZE = 20
AUTOCOMPLETE_LIMIT = 25        # Discord choice limit

# Pets
HUNGER_MAX = 100
HUNGER_DECAY_PER_HOUR = 1.0
PET_NAME_MAX_LEN = 20

# Timings (milliseconds)
MS_PER_HOUR = 60 * 60 * 1000
PET_CACHE_TTL_MS = MS_PER_HOUR
TIMEZONE_CACHE_TTL_MS = 7 * 24 * MS_PER_HOUR
DAILY_COOLDOWN_MS = 20 * MS_PER_HOUR
MENTION_COOLDOWN_MS = 2 * MS_PER_HOUR
