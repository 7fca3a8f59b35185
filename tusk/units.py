"""Unit-suffixed quantities accepted on the command line."""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidQuantity

_QUANTITY_RE = re.compile(r"(?P<magnitude>[0-9]+)(?P<suffix>[A-Za-z]*)")
_U64_MAX = 2**64 - 1


def _split(text: str, kind: str) -> tuple[int, str]:
    """Split `text` into its integer magnitude and alphabetic suffix."""

    match = _QUANTITY_RE.fullmatch(text)
    if match is None:
        raise InvalidQuantity(kind, text)
    magnitude = int(match.group("magnitude"))
    if magnitude > _U64_MAX:
        raise InvalidQuantity(kind, text)
    return magnitude, match.group("suffix")


class StorageScale(Enum):
    """Storage scales keyed by their display suffix."""

    BYTES = ""
    KIBIBYTES = "kB"
    MEBIBYTES = "MB"
    GIBIBYTES = "GB"
    TEBIBYTES = "TB"

    @property
    def multiplier(self) -> int:
        # Suffixes look decimal but Postgres reads them as powers of 1024.
        return 1024 ** _STORAGE_EXPONENTS[self]


_STORAGE_EXPONENTS = {
    StorageScale.BYTES: 0,
    StorageScale.KIBIBYTES: 1,
    StorageScale.MEBIBYTES: 2,
    StorageScale.GIBIBYTES: 3,
    StorageScale.TEBIBYTES: 4,
}


class TimeScale(Enum):
    """Time scales keyed by their display suffix."""

    MICROSECONDS = "us"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "min"
    HOURS = "h"
    DAYS = "d"


@dataclass(frozen=True, slots=True)
class StorageUnit:
    """A storage size expressed in the unit it was written in."""

    magnitude: int
    scale: StorageScale = StorageScale.BYTES

    @classmethod
    def parse(cls, text: str) -> StorageUnit:
        """Parse strings such as ``"512"``, ``"2kB"`` or ``"32GB"``."""

        magnitude, suffix = _split(text, "storage unit")
        try:
            scale = StorageScale(suffix)
        except ValueError as exc:
            raise InvalidQuantity("storage unit", text) from exc
        return cls(magnitude, scale)

    def byte_count(self) -> int:
        """Return the size in bytes using binary multipliers."""

        return self.magnitude * self.scale.multiplier

    def __str__(self) -> str:
        return f"{self.magnitude}{self.scale.value}"


@dataclass(frozen=True, slots=True)
class TimeUnit:
    """A relative time threshold such as ``5min``.

    The display form doubles as a Postgres interval literal, so no conversion
    to a common base unit is needed.
    """

    magnitude: int
    scale: TimeScale

    @classmethod
    def parse(cls, text: str) -> TimeUnit:
        """Parse strings such as ``"250ms"`` or ``"5min"``; the unit is required."""

        magnitude, suffix = _split(text, "time unit")
        if not suffix:
            raise InvalidQuantity("time unit", text)
        try:
            scale = TimeScale(suffix)
        except ValueError as exc:
            raise InvalidQuantity("time unit", text) from exc
        return cls(magnitude, scale)

    def __str__(self) -> str:
        return f"{self.magnitude}{self.scale.value}"


def parse_storage_unit(text: str) -> StorageUnit:
    return StorageUnit.parse(text)


def parse_time_unit(text: str) -> TimeUnit:
    return TimeUnit.parse(text)


def time_unit_arg(text: str) -> TimeUnit:
    """argparse ``type=`` adapter for durations."""

    try:
        return TimeUnit.parse(text)
    except InvalidQuantity as exc:
        raise argparse.ArgumentTypeError(
            f"{exc}. Should be a number and unit (5s, 5min, 5h, 5d)"
        ) from exc


__all__ = [
    "StorageScale",
    "StorageUnit",
    "TimeScale",
    "TimeUnit",
    "parse_storage_unit",
    "parse_time_unit",
    "time_unit_arg",
]
