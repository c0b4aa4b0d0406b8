from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re

from wallpaper.errors import ConfigError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_NS_PER_US = 1_000
_NS_PER_S = 1_000_000_000

UNIT_NANOS: dict[str, int] = {}


def _register(nanos: int, *names: str) -> None:
    for name in names:
        UNIT_NANOS[name] = nanos


_register(1, "ns", "nsec")
_register(1_000, "us", "usec", "µs")
_register(1_000_000, "ms", "msec")
_register(_NS_PER_S, "s", "sec", "secs", "second", "seconds")
_register(60 * _NS_PER_S, "m", "min", "mins", "minute", "minutes")
_register(3600 * _NS_PER_S, "h", "hr", "hrs", "hour", "hours")
_register(86400 * _NS_PER_S, "d", "day", "days")
_register(7 * 86400 * _NS_PER_S, "w", "week", "weeks")
_register(2_630_016 * _NS_PER_S, "M", "month", "months")
_register(31_557_600 * _NS_PER_S, "y", "year", "years")

_DURATION_PART = re.compile(r"\s*(\d+)\s*([^\d\s]+)")
_FRACTION = re.compile(r"(\.\d{1,6})\d*")

FORMAT_UNITS = (
    ("d", 86400 * _NS_PER_S),
    ("h", 3600 * _NS_PER_S),
    ("m", 60 * _NS_PER_S),
    ("s", _NS_PER_S),
    ("ms", 1_000_000),
    ("us", _NS_PER_US),
)


def parse_duration(text: str) -> timedelta:
    """Parse a human duration such as ``"5m"`` or ``"1h 30min"``."""
    source = text.strip()
    if not source:
        raise ConfigError("can't parse duration: empty string")

    total_ns = 0
    position = 0
    while position < len(source):
        match = _DURATION_PART.match(source, position)
        if match is None:
            raise ConfigError(f"can't parse duration: {text!r}")
        value, unit = match.groups()
        nanos = UNIT_NANOS.get(unit)
        if nanos is None:
            raise ConfigError(f"can't parse duration: unknown unit {unit!r} in {text!r}")
        total_ns += int(value) * nanos
        position = match.end()
        while position < len(source) and source[position].isspace():
            position += 1

    try:
        return timedelta(microseconds=total_ns // _NS_PER_US)
    except OverflowError:
        raise ConfigError(f"can't parse duration: {text!r} is too long") from None


def format_duration(value: timedelta) -> str:
    remaining = duration_ns(value)
    if remaining <= 0:
        return "0s"
    parts: list[str] = []
    for unit, nanos in FORMAT_UNITS:
        count, remaining = divmod(remaining, nanos)
        if count:
            parts.append(f"{count}{unit}")
    return " ".join(parts)


def duration_ns(value: timedelta) -> int:
    return (value.days * 86400 + value.seconds) * _NS_PER_S + value.microseconds * _NS_PER_US


def timestamp_ns(value: datetime) -> int:
    return duration_ns(value - EPOCH)


def format_timestamp(value: datetime) -> str:
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(text: str) -> datetime:
    source = text.strip()
    if source.endswith(("Z", "z")):
        source = source[:-1] + "+00:00"
    source = _FRACTION.sub(r"\1", source, count=1)
    try:
        parsed = datetime.fromisoformat(source)
    except ValueError as exc:
        raise ConfigError(f"can't parse timestamp: {text!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
