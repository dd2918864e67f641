"""Server package initialization."""

# Expose shared constants for convenience
from .config import (  # noqa: F401
    MAX_BAG_CAPACITY,
    STORAGE_PAGE_SIZE,
    HUNGER_MAX,
    DAILY_COOLDOWN_MS,
    PETS_TABLE,
    TIMEZONE_TABLE,
)
