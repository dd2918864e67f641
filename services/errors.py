"""Error taxonomy shared by the pet, inventory and daily services."""
from __future__ import annotations

from typing import Optional


class PetBotError(Exception):
    """Base class for domain errors surfaced to command handlers."""

    code = "E_PETBOT"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code or self.code
        self.message = message


class ValidationError(PetBotError):
    code = "E_INVALID"


class SameCompartmentError(ValidationError):
    code = "E_SAME_COMPARTMENT"

    def __init__(self, compartment: str):
        super().__init__(f"Source and destination are both {compartment}.")
        self.compartment = compartment


class NotFoundError(PetBotError):
    code = "E_NOT_FOUND"


class AlreadyExistsError(PetBotError):
    code = "E_EXISTS"


class AlreadyHasPetError(AlreadyExistsError):
    code = "E_HAS_PET"

    def __init__(self, user_id: str):
        super().__init__("You already have a pet.")
        self.user_id = user_id


class CapacityExceededError(PetBotError):
    code = "E_BAG_FULL"

    def __init__(self, current: int, limit: int):
        super().__init__(
            f"Bag is full. Cannot add new item types. Current: {current}/{limit}"
        )
        self.current = current
        self.limit = limit


class InsufficientQuantityError(PetBotError):
    code = "E_NOT_ENOUGH"

    def __init__(self, item_id: str, requested: int, available: int):
        super().__init__(
            f"Not enough {item_id}: requested {requested}, have {available}."
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available


class OnCooldownError(PetBotError):
    code = "E_COOLDOWN"

    def __init__(self, remaining_ms: int):
        super().__init__(
            f"Daily reward already claimed. Try again in {format_duration(remaining_ms)}."
        )
        self.remaining_ms = remaining_ms


# --- persistence gateway errors -------------------------------------------

class GatewayError(Exception):
    """Base class for errors raised by the persistence gateway."""


class ConditionFailed(GatewayError):
    def __init__(self, condition):
        super().__init__(f"condition failed: {condition}")
        self.condition = condition


class TransactionFailed(GatewayError):
    """A transaction was rejected; ``index`` names the failing item if known."""

    def __init__(self, index: Optional[int], condition=None):
        where = f"item {index}" if index is not None else "unknown item"
        super().__init__(f"transaction cancelled at {where}: {condition}")
        self.index = index
        self.condition = condition


class BackendUnavailable(GatewayError):
    pass


def format_duration(ms: int) -> str:
    """Render ``ms`` as ``"1h 5m 3s"``; hours and minutes only when non-zero."""
    ms = max(0, int(ms))
    hours, rest = divmod(ms, 60 * 60 * 1000)
    minutes, rest = divmod(rest, 60 * 1000)
    seconds = rest // 1000
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")
    return " ".join(parts)


__all__ = [
    "PetBotError",
    "ValidationError",
    "SameCompartmentError",
    "NotFoundError",
    "AlreadyExistsError",
    "AlreadyHasPetError",
    "CapacityExceededError",
    "InsufficientQuantityError",
    "OnCooldownError",
    "GatewayError",
    "ConditionFailed",
    "TransactionFailed",
    "BackendUnavailable",
    "format_duration",
]
