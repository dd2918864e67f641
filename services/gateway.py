"""Key-value persistence gateway.

The services only talk to the store through :class:`Gateway`:

* ``get(table, key)`` / ``batch_get(table, keys)``
* ``put(table, key, attributes, condition=None)``
* ``conditional_update(table, key, update, condition=None)`` -> new attributes
* ``transact([TransactItem, ...])`` -- all-or-nothing
* ``query(table, pk)``

Updates and conditions are small value objects evaluated against a record's
attribute dict (``None`` when the record does not exist). Updating a missing
record creates it.

:class:`SqlGateway` stores every record as one row of ``records`` and makes
each write a compare-and-swap on the row version. A lost race rolls back and
re-evaluates the conditions against fresh rows, so a condition that held when
the transaction committed held against the committed data.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from app.models import Record
from .errors import BackendUnavailable, ConditionFailed, TransactionFailed

logger = logging.getLogger(__name__)

Attributes = Dict[str, Any]


class Key(NamedTuple):
    pk: str
    sk: str


# --- updates ----------------------------------------------------------------

class Update:
    def apply(self, attrs: Attributes) -> Attributes:
        raise NotImplementedError


@dataclass(frozen=True)
class SetAttributes(Update):
    values: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, attrs: Attributes) -> Attributes:
        return {**attrs, **copy.deepcopy(dict(self.values))}


@dataclass(frozen=True)
class IncrementMapEntry(Update):
    """``SET attr.key = if_not_exists(attr.key, 0) + amount``."""
    attribute: str
    key: str
    amount: int

    def apply(self, attrs: Attributes) -> Attributes:
        entries = dict(attrs.get(self.attribute) or {})
        entries[self.key] = int(entries.get(self.key, 0)) + self.amount
        return {**attrs, self.attribute: entries}


@dataclass(frozen=True)
class RemoveMapEntry(Update):
    attribute: str
    key: str

    def apply(self, attrs: Attributes) -> Attributes:
        entries = dict(attrs.get(self.attribute) or {})
        entries.pop(self.key, None)
        return {**attrs, self.attribute: entries}


# --- conditions -------------------------------------------------------------

class Condition:
    def holds(self, attrs: Optional[Attributes]) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class RecordExists(Condition):
    def holds(self, attrs):
        return attrs is not None


@dataclass(frozen=True)
class RecordNotExists(Condition):
    def holds(self, attrs):
        return attrs is None


@dataclass(frozen=True)
class AttributeNotExists(Condition):
    name: str

    def holds(self, attrs):
        return attrs is None or attrs.get(self.name) is None


@dataclass(frozen=True)
class AttributeEquals(Condition):
    """``value=None`` means the attribute must be absent."""
    name: str
    value: Any

    def holds(self, attrs):
        current = (attrs or {}).get(self.name)
        return current == self.value


@dataclass(frozen=True)
class MapEntryAtLeast(Condition):
    attribute: str
    key: str
    amount: int

    def holds(self, attrs):
        if attrs is None:
            return False
        entries = attrs.get(self.attribute) or {}
        return self.key in entries and int(entries[self.key]) >= self.amount


@dataclass(frozen=True)
class MapEntryNotPositive(Condition):
    attribute: str
    key: str

    def holds(self, attrs):
        entries = (attrs or {}).get(self.attribute) or {}
        return self.key in entries and int(entries[self.key]) <= 0


@dataclass(frozen=True)
class MapHasRoomFor(Condition):
    """True if ``key`` is already held or fewer than ``limit`` keys are held.

    Only positive entries count; a zero left behind by a subtract is the same
    as an absent key.
    """
    attribute: str
    key: str
    limit: int

    def holds(self, attrs):
        entries = (attrs or {}).get(self.attribute) or {}
        held = {k for k, v in entries.items() if int(v) > 0}
        return self.key in held or len(held) < self.limit


# --- transaction items ------------------------------------------------------

@dataclass(frozen=True)
class TransactItem:
    table: str
    key: Key
    update: Optional[Update] = None
    put: Optional[Mapping[str, Any]] = None
    condition: Optional[Condition] = None

    def __post_init__(self):
        if (self.update is None) == (self.put is None):
            raise ValueError("TransactItem needs exactly one of update or put")

    def new_attributes(self, current: Optional[Attributes]) -> Attributes:
        if self.put is not None:
            return copy.deepcopy(dict(self.put))
        return self.update.apply(copy.deepcopy(current or {}))


class Gateway:
    """Persistence contract used by the services."""

    def get(self, table: str, key: Key) -> Optional[Attributes]:
        raise NotImplementedError

    def batch_get(self, table: str, keys: Sequence[Key]) -> Dict[Key, Attributes]:
        raise NotImplementedError

    def put(self, table: str, key: Key, attributes: Mapping[str, Any],
            condition: Optional[Condition] = None) -> None:
        raise NotImplementedError

    def conditional_update(self, table: str, key: Key, update: Update,
                           condition: Optional[Condition] = None) -> Attributes:
        raise NotImplementedError

    def transact(self, items: Sequence[TransactItem]) -> List[Attributes]:
        raise NotImplementedError

    def query(self, table: str, pk: str) -> List[Attributes]:
        raise NotImplementedError


class SqlGateway(Gateway):
    """Gateway over the ``records`` table of a Flask-SQLAlchemy database."""

    BATCH_SIZE = 100

    def __init__(self, db, max_attempts: int = 5):
        self.db = db
        self.max_attempts = max_attempts

    @property
    def session(self):
        return self.db.session

    # reads

    def _load(self, table: str, key: Key) -> Optional[Record]:
        return self.session.get(Record, (table, key.pk, key.sk), populate_existing=True)

    def get(self, table, key):
        try:
            row = self._load(table, key)
        except DBAPIError as exc:
            self.session.rollback()
            raise BackendUnavailable(str(exc)) from exc
        return copy.deepcopy(row.data) if row is not None else None

    def batch_get(self, table, keys):
        keys = list(dict.fromkeys(keys))
        found: Dict[Key, Attributes] = {}
        try:
            for i in range(0, len(keys), self.BATCH_SIZE):
                chunk = keys[i:i + self.BATCH_SIZE]
                rows = (
                    Record.query.filter(Record.table_name == table)
                    .filter(or_(*(and_(Record.pk == k.pk, Record.sk == k.sk) for k in chunk)))
                    .populate_existing()
                    .all()
                )
                for row in rows:
                    found[Key(row.pk, row.sk)] = copy.deepcopy(row.data)
        except DBAPIError as exc:
            self.session.rollback()
            raise BackendUnavailable(str(exc)) from exc
        return found

    def query(self, table, pk):
        try:
            rows = (
                Record.query.filter_by(table_name=table, pk=pk)
                .order_by(Record.sk.asc())
                .populate_existing()
                .all()
            )
        except DBAPIError as exc:
            self.session.rollback()
            raise BackendUnavailable(str(exc)) from exc
        return [{"sk": row.sk, **copy.deepcopy(row.data)} for row in rows]

    # writes

    def put(self, table, key, attributes, condition=None):
        try:
            self.transact([TransactItem(table, key, put=attributes, condition=condition)])
        except TransactionFailed as exc:
            if exc.index is None:
                raise
            raise ConditionFailed(exc.condition) from None

    def conditional_update(self, table, key, update, condition=None):
        try:
            results = self.transact([TransactItem(table, key, update=update, condition=condition)])
        except TransactionFailed as exc:
            if exc.index is None:
                raise
            raise ConditionFailed(exc.condition) from None
        return results[0]

    def transact(self, items):
        items = list(items)
        seen = set()
        for item in items:
            ident = (item.table, item.key)
            if ident in seen:
                raise ValueError(f"record {item.key} appears twice in one transaction")
            seen.add(ident)

        for attempt in range(1, self.max_attempts + 1):
            try:
                results = [self._stage(index, item) for index, item in enumerate(items)]
                self.session.commit()
                return results
            except TransactionFailed:
                self.session.rollback()
                raise
            except (StaleDataError, IntegrityError) as exc:
                self.session.rollback()
                logger.info(
                    "transact_conflict attempt=%s items=%s error=%s",
                    attempt,
                    len(items),
                    exc.__class__.__name__,
                )
            except DBAPIError as exc:
                self.session.rollback()
                raise BackendUnavailable(str(exc)) from exc
        logger.warning("transact_gave_up attempts=%s items=%s", self.max_attempts, len(items))
        raise TransactionFailed(None, "concurrent modification")

    def _stage(self, index: int, item: TransactItem) -> Attributes:
        row = self._load(item.table, item.key)
        current = copy.deepcopy(row.data) if row is not None else None
        if item.condition is not None and not item.condition.holds(current):
            raise TransactionFailed(index, item.condition)
        new = item.new_attributes(current)
        if row is None:
            self.session.add(
                Record(table_name=item.table, pk=item.key.pk, sk=item.key.sk, data=new)
            )
        else:
            row.data = new
            # always bump the version so the condition is checked at commit
            flag_modified(row, "data")
        self.session.flush()
        return copy.deepcopy(new)


__all__ = [
    "Key",
    "Update",
    "SetAttributes",
    "IncrementMapEntry",
    "RemoveMapEntry",
    "Condition",
    "RecordExists",
    "RecordNotExists",
    "AttributeNotExists",
    "AttributeEquals",
    "MapEntryAtLeast",
    "MapEntryNotPositive",
    "MapHasRoomFor",
    "TransactItem",
    "Gateway",
    "SqlGateway",
]
