"""User timezone registry.

Users register an IANA timezone plus a display location. Lookups are cached
for a week; ``/time all`` groups users sharing a zone abbreviation.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from server.config import MENTION_COOLDOWN_MS, TIMEZONE_CACHE_TTL_MS, TIMEZONE_TABLE
from .cache import TTLCache
from .clock import Clock, now_ms
from .errors import ValidationError
from .gateway import Gateway
from .keys import timezone_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserTimezone:
    user_id: str
    timezone: str
    display_location: str


@dataclass
class TimezoneGroup:
    label: str
    offset_minutes: int
    local_time: str
    user_ids: List[str] = field(default_factory=list)


def resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name}") from None


def local_time(timezone: str, at_ms: int) -> dt.datetime:
    return dt.datetime.fromtimestamp(at_ms / 1000, tz=resolve_zone(timezone))


def format_time(moment: dt.datetime) -> str:
    """``Mon 14:05``"""
    return moment.strftime("%a %H:%M")


class TimezoneService:
    def __init__(self, gateway: Gateway, cache: Optional[TTLCache] = None,
                 clock: Clock = now_ms, table: str = TIMEZONE_TABLE):
        self.gateway = gateway
        self.clock = clock
        self.cache = cache if cache is not None else TTLCache(TIMEZONE_CACHE_TTL_MS, clock)
        self.table = table
        self._mentions = TTLCache(MENTION_COOLDOWN_MS, clock)

    def save_user(self, user_id: str, timezone: str, display_location: str) -> UserTimezone:
        resolve_zone(timezone)
        display_location = (display_location or timezone).strip()
        record = UserTimezone(user_id, timezone, display_location)
        self.gateway.put(
            self.table,
            timezone_key(user_id),
            {"timezone": timezone, "display_location": display_location},
        )
        self.cache.set(user_id, record)
        logger.info("timezone_saved user_id=%s timezone=%s", user_id, timezone)
        return record

    def get_users(self, user_ids: Iterable[str]) -> List[UserTimezone]:
        found: List[UserTimezone] = []
        to_fetch: List[str] = []
        for uid in dict.fromkeys(user_ids):
            cached = self.cache.get(uid)
            if cached is not None:
                found.append(cached)
            else:
                to_fetch.append(uid)

        if to_fetch:
            by_key = {timezone_key(uid): uid for uid in to_fetch}
            rows = self.gateway.batch_get(self.table, list(by_key))
            for key, attrs in rows.items():
                record = UserTimezone(by_key[key], attrs["timezone"], attrs.get("display_location", ""))
                self.cache.set(record.user_id, record)
                found.append(record)
        return found

    def get_single_user(self, user_id: str) -> Optional[UserTimezone]:
        users = self.get_users([user_id])
        return users[0] if users else None

    def group_by_offset(self, user_ids: Iterable[str]) -> List[TimezoneGroup]:
        now = self.clock()
        groups: dict = {}
        for user in self.get_users(user_ids):
            moment = local_time(user.timezone, now)
            offset = int(moment.utcoffset().total_seconds() // 60)
            label = moment.tzname() or moment.strftime("%z")
            group = groups.get((label, offset))
            if group is None:
                group = groups[(label, offset)] = TimezoneGroup(label, offset, format_time(moment))
            group.user_ids.append(user.user_id)
        return sorted(groups.values(), key=lambda g: (g.offset_minutes, g.label))

    def should_announce(self, user_id: str) -> bool:
        """True at most once per mention cooldown for ``user_id``."""
        if self._mentions.get(user_id):
            return False
        self._mentions.set(user_id, True)
        return True

    def announce_mentions(self, user_ids: Iterable[str]) -> List[Tuple[str, str]]:
        """Local times for mentioned users that registered a timezone."""
        now = self.clock()
        out = []
        for user in self.get_users(user_ids):
            if not self.should_announce(user.user_id):
                continue
            out.append((user.user_id, format_time(local_time(user.timezone, now))))
        return out


__all__ = [
    "UserTimezone",
    "TimezoneGroup",
    "TimezoneService",
    "resolve_zone",
    "local_time",
    "format_time",
]
