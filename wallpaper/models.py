from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
import hashlib
import json
from pathlib import Path
from typing import Any, Iterable

from wallpaper.errors import ConfigError
from wallpaper.timefmt import (
    EPOCH,
    format_duration,
    format_timestamp,
    parse_duration,
    parse_timestamp,
)

CACHE_VERSION = 0
DEFAULT_FPS = 30
TIME_MIN = time.min
TIME_MAX = time.max
SINGLE_TIME_SPAN = timedelta(hours=1)


def _parse_time_of_day(text: str, what: str, source: str) -> time:
    value = text.strip()
    for pattern in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value, pattern).time()
        except ValueError:
            continue
    try:
        hour = int(value)
    except ValueError:
        raise ConfigError(f"invalid time for {what} in {source}") from None
    if hour == 24:
        return TIME_MAX
    if not 0 <= hour <= 23:
        raise ConfigError(f"invalid hour for {what} in {source}")
    return time(hour)


def _time_text(value: time) -> str:
    if value == TIME_MAX:
        return "24"
    if value.second or value.microsecond:
        return value.strftime("%H:%M:%S")
    if value.minute:
        return value.strftime("%H:%M")
    return value.strftime("%H")


@dataclass(frozen=True)
class ValidTime:
    """Closed time-of-day window ``[start, end]``."""

    start: time
    end: time

    @classmethod
    def parse(cls, text: str) -> ValidTime:
        source = text.strip()
        if source == "*":
            return ALL_DAY
        if "-" in source:
            start_text, end_text = source.split("-", 1)
            return cls(
                _parse_time_of_day(start_text, "start", source),
                _parse_time_of_day(end_text, "end", source),
            )
        start = _parse_time_of_day(source, "single time", source)
        end = (datetime.combine(date.min, start) + SINGLE_TIME_SPAN).time()
        return cls(start, end)

    def matches(self, moment: time) -> bool:
        return self.start <= moment <= self.end

    def check(self) -> str | None:
        if self.start > self.end:
            return (
                f"invalid time: {_time_text(self.start)} must be before "
                f"{_time_text(self.end)}"
            )
        return None

    def __str__(self) -> str:
        if self == ALL_DAY:
            return "*"
        return f"{_time_text(self.start)}-{_time_text(self.end)}"


ALL_DAY = ValidTime(TIME_MIN, TIME_MAX)


@dataclass(frozen=True)
class Monitors:
    """Monitor selector: ``names is None`` means every connected monitor."""

    names: tuple[str, ...] | None = None

    @classmethod
    def all(cls) -> Monitors:
        return cls(None)

    @classmethod
    def some(cls, names: Iterable[str]) -> Monitors:
        return cls(tuple(names))

    @classmethod
    def only(cls, monitor: str | None) -> Monitors:
        if monitor is None:
            return cls.all()
        return cls.some([monitor])

    @property
    def is_all(self) -> bool:
        return self.names is None

    def includes(self, monitor: str) -> bool:
        if self.names is None:
            return True
        return monitor in self.names


def _fingerprint(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(encoded.encode("utf-8")).hexdigest()


def _require(payload: dict[str, Any], key: str, kind: type | tuple[type, ...], record: str) -> Any:
    if key not in payload:
        raise ConfigError(f"{record}: missing field {key!r}")
    value = payload[key]
    if not isinstance(value, kind) or isinstance(value, bool) and kind is not bool:
        raise ConfigError(f"{record}: invalid value for {key!r}: {value!r}")
    return value


def _string_map(value: Any, key: str, record: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ConfigError(f"{record}: invalid value for {key!r}: {value!r}")
    for name, item in value.items():
        if not isinstance(item, str):
            raise ConfigError(f"{record}: invalid entry {name!r} in {key!r}: {item!r}")
    return dict(value)


def _decode_images(value: dict[str, Any]) -> dict[str, list[ValidTime]]:
    images: dict[str, list[ValidTime]] = {}
    for name in sorted(value):
        raw = value[name]
        items = [raw] if isinstance(raw, str) else raw
        if not isinstance(items, list) or not items:
            raise ConfigError(f"config: image {name!r} needs a time or a non-empty list of times")
        times: list[ValidTime] = []
        for item in items:
            if not isinstance(item, str):
                raise ConfigError(f"config: invalid time for image {name!r}: {item!r}")
            times.append(ValidTime.parse(item))
        images[name] = times
    return images


def _decode_interval(payload: dict[str, Any], key: str) -> timedelta:
    value = parse_duration(_require(payload, key, str, "config"))
    if value <= timedelta(0):
        raise ConfigError(f"config: {key} must be greater than zero")
    return value


@dataclass
class Config:
    check_interval: timedelta = timedelta(minutes=5)
    update_interval: timedelta = timedelta(hours=1)
    transitions: list[str] = field(default_factory=list)
    images: dict[str, list[ValidTime]] = field(default_factory=dict)
    image_dir: Path = Path("")
    fps: int = DEFAULT_FPS
    monitors: Monitors = field(default_factory=Monitors.all)

    @classmethod
    def from_dict(cls, payload: Any) -> Config:
        if not isinstance(payload, dict):
            raise ConfigError("config: expected a JSON object")

        transitions = _require(payload, "transitions", list, "config")
        if not all(isinstance(item, str) for item in transitions):
            raise ConfigError(f"config: invalid value for 'transitions': {transitions!r}")

        fps = _require(payload, "fps", int, "config")
        if not 0 <= fps <= 255:
            raise ConfigError(f"config: fps must be between 0 and 255, got {fps}")

        raw_monitors = payload.get("monitors")
        if raw_monitors is None:
            monitors = Monitors.all()
        elif isinstance(raw_monitors, list) and all(isinstance(m, str) for m in raw_monitors):
            monitors = Monitors.some(raw_monitors)
        else:
            raise ConfigError(f"config: invalid value for 'monitors': {raw_monitors!r}")

        return cls(
            check_interval=_decode_interval(payload, "check_interval"),
            update_interval=_decode_interval(payload, "update_interval"),
            transitions=list(transitions),
            images=_decode_images(_require(payload, "images", dict, "config")),
            image_dir=Path(_require(payload, "image_dir", str, "config")),
            fps=fps,
            monitors=monitors,
        )

    def to_dict(self) -> dict[str, Any]:
        images: dict[str, Any] = {}
        for name in sorted(self.images):
            times = [str(item) for item in self.images[name]]
            images[name] = times[0] if len(times) == 1 else times
        payload: dict[str, Any] = {
            "check_interval": format_duration(self.check_interval),
            "update_interval": format_duration(self.update_interval),
            "transitions": list(self.transitions),
            "images": images,
            "image_dir": str(self.image_dir),
            "fps": self.fps,
        }
        if self.monitors.names is not None:
            payload["monitors"] = list(self.monitors.names)
        return payload

    def fingerprint(self) -> str:
        return _fingerprint(self.to_dict())

    def image_paths(self) -> dict[Path, list[ValidTime]]:
        return {self.image_dir / name: times for name, times in self.images.items()}


@dataclass
class Cache:
    version: int = CACHE_VERSION
    last_update: datetime = EPOCH
    last_transitions: dict[str, str] = field(default_factory=dict)
    last_images: dict[str, Path] = field(default_factory=dict)

    def update(
        self,
        monitor: str,
        image: Path,
        transition: str,
        now: datetime | None = None,
    ) -> None:
        self.last_update = now if now is not None else datetime.now(timezone.utc)
        self.last_images[monitor] = image
        self.last_transitions[monitor] = transition

    @classmethod
    def from_dict(cls, payload: Any) -> Cache:
        if not isinstance(payload, dict):
            raise ConfigError("cache: expected a JSON object")
        images = _string_map(
            _require(payload, "last_images", dict, "cache"), "last_images", "cache"
        )
        return cls(
            version=_require(payload, "version", int, "cache"),
            last_update=parse_timestamp(_require(payload, "last_update", str, "cache")),
            last_transitions=_string_map(
                _require(payload, "last_transitions", dict, "cache"),
                "last_transitions",
                "cache",
            ),
            last_images={monitor: Path(path) for monitor, path in images.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "last_update": format_timestamp(self.last_update),
            "last_transitions": dict(sorted(self.last_transitions.items())),
            "last_images": {
                monitor: str(path) for monitor, path in sorted(self.last_images.items())
            },
        }

    def fingerprint(self) -> str:
        payload = self.to_dict()
        del payload["last_update"]
        return _fingerprint(payload)
