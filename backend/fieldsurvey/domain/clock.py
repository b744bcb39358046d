"""Clock and id-generator capabilities injected into entities."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Callable

import pytz

from ..core.config import get_settings

UTC = pytz.UTC

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid.uuid4())


def local_tz():
    """Zone used for naive date-times coming from external records."""
    try:
        return pytz.timezone(get_settings().TZ)
    except pytz.UnknownTimeZoneError:
        return UTC


def ensure_aware(value: datetime) -> datetime:
    """Return ``value`` as a UTC datetime, localizing naive values first."""
    if value.tzinfo is None or value.utcoffset() is None:
        value = local_tz().localize(value)
    return value.astimezone(UTC)


def to_iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
