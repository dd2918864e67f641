from .base import db, Model, metadata

# Import model modules so tables register with metadata
from .records import Record  # noqa: F401

__all__ = [
    "db", "Model", "metadata",
    "Record",
]
