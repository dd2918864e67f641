"""Key layout of the pets table (single-table design)."""
from .gateway import Key

PROFILE_SK = "Profile"
TIMEZONE_SK = "Timezone"


def user_pk(user_id: str) -> str:
    return f"User#{user_id}"


def profile_key(user_id: str) -> Key:
    return Key(user_pk(user_id), PROFILE_SK)


def pet_key(user_id: str, pet_id: str) -> Key:
    return Key(user_pk(user_id), f"Pet#{pet_id}")


def inventory_key(user_id: str, kind: str) -> Key:
    return Key(user_pk(user_id), f"Inventory#{kind}")


def timezone_key(user_id: str) -> Key:
    return Key(user_pk(user_id), TIMEZONE_SK)
