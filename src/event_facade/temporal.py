"""Read-time date coercion and the injectable clock."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Epoch numbers below one year's worth of milliseconds are read as seconds.
SECONDS_EPOCH_THRESHOLD = 31_557_600_000

# Digit strings are epochs only at ten digits (seconds) or more; "2014" is not.
_EPOCH_STRING = re.compile(r"-?\d{10,}(?:\.\d+)?")

_FALLBACK_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(tz=UTC)


@dataclass(frozen=True)
class FixedClock:
    """Clock pinned to one instant, for deterministic reads."""

    moment: datetime

    def now(self) -> datetime:
        return self.moment


def _from_epoch(value: float) -> datetime:
    if abs(value) < SECONDS_EPOCH_THRESHOLD:
        return datetime.fromtimestamp(value, tz=UTC)
    return datetime.fromtimestamp(value / 1000.0, tz=UTC)


def _as_aware(parsed: datetime) -> datetime:
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def parse_datetime_string(value: str) -> datetime | None:
    raw = value.strip()
    if not raw:
        return None

    if _EPOCH_STRING.fullmatch(raw):
        return _from_epoch(float(raw))

    try:
        return _as_aware(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return _as_aware(datetime.strptime(raw, fmt))
        except ValueError:
            continue
    return None


def to_datetime(value: Any) -> Any:
    """Coerce strings and epoch numbers to aware datetimes.

    Dates pass through untouched, as does anything that cannot be read as a
    point in time.
    """
    if isinstance(value, (datetime, date)) or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        try:
            return _from_epoch(float(value))
        except (OverflowError, OSError, ValueError):
            return value
    if isinstance(value, str):
        try:
            parsed = parse_datetime_string(value)
        except (OverflowError, OSError, ValueError):
            parsed = None
        if parsed is None:
            logger.debug("Leaving unparseable temporal value %r as-is", value)
            return value
        return parsed
    return value


def coerce_tree(value: Any) -> Any:
    """Coerce every leaf of a ``dates`` section, returning new containers."""
    if isinstance(value, Mapping):
        return {key: coerce_tree(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [coerce_tree(item) for item in value]
    return to_datetime(value)


def coerce_for_path(segments: Sequence[str], value: Any) -> Any:
    if "dates" in segments:
        return coerce_tree(value)
    if segments and segments[-1] == "timestamp":
        return to_datetime(value)
    return value
