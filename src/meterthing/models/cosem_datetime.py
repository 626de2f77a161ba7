"""COSEM date-time model.

Meters report their clock as a 12 byte octet string:

* year (2 bytes, big-endian, ``0xFFFF`` = not specified)
* month, day of month, day of week
* hour, minute, second, hundredths of a second
* deviation from UTC in minutes (signed 2 bytes, ``0x8000`` = not specified)
* clock status flags

Single byte fields use ``0xFF`` for "not specified". Month additionally
knows ``0xFD``/``0xFE`` (daylight saving end/begin) and day of month knows
``0xFD``/``0xFE`` (second last/last day of the month).
"""

from __future__ import annotations

import enum
import struct
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict

_LAYOUT = struct.Struct(">HBBBBBBBhB")

NOT_SPECIFIED = 0xFF
_YEAR_NOT_SPECIFIED = 0xFFFF
_DEVIATION_NOT_SPECIFIED = -0x8000
_MAX_DEVIATION_MINUTES = 720

MONTH_DST_END = 0xFD
MONTH_DST_BEGIN = 0xFE
DAY_SECOND_LAST = 0xFD
DAY_LAST = 0xFE


class ClockStatus(enum.IntFlag):
    """Clock status bits reported alongside the date-time."""

    INVALID_VALUE = 0x01
    DOUBTFUL_VALUE = 0x02
    DIFFERENT_CLOCK_BASE = 0x04
    INVALID_CLOCK_STATUS = 0x08
    DAYLIGHT_SAVING_ACTIVE = 0x80


def _check(name: str, value: int, low: int, high: int, extra: tuple[int, ...] = ()) -> int | None:
    if value == NOT_SPECIFIED:
        return None
    if low <= value <= high or value in extra:
        return value
    raise ValueError(f"COSEM date-time {name} out of range: {value}")


def _field(value: int | None, width: int) -> str:
    if value is None:
        return "*" * width
    if value >= 10**width:
        return f"{value:X}"
    return f"{value:0{width}d}"


class CosemDateTime(BaseModel):
    """A decoded COSEM date-time; ``None`` marks a field the meter left open."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    year: int | None = None
    month: int | None = None
    day: int | None = None
    weekday: int | None = None
    hour: int | None = None
    minute: int | None = None
    second: int | None = None
    hundredths: int | None = None
    deviation: int | None = None
    clock_status: ClockStatus | None = None

    @classmethod
    def parse(cls, data: bytes) -> CosemDateTime:
        """Decode the 12 byte wire form.

        Raises ``ValueError`` for a wrong length, an out-of-range field or a
        fully specified date that does not exist on the calendar.
        """
        if len(data) != _LAYOUT.size:
            raise ValueError(f"COSEM date-time must be {_LAYOUT.size} bytes, got {len(data)}")

        year, month, day, weekday, hour, minute, second, hundredths, deviation, status = _LAYOUT.unpack(data)

        if deviation == _DEVIATION_NOT_SPECIFIED:
            parsed_deviation = None
        elif -_MAX_DEVIATION_MINUTES <= deviation <= _MAX_DEVIATION_MINUTES:
            parsed_deviation = deviation
        else:
            raise ValueError(f"COSEM date-time deviation out of range: {deviation}")

        result = cls(
            year=None if year == _YEAR_NOT_SPECIFIED else year,
            month=_check("month", month, 1, 12, (MONTH_DST_END, MONTH_DST_BEGIN)),
            day=_check("day", day, 1, 31, (DAY_SECOND_LAST, DAY_LAST)),
            weekday=_check("weekday", weekday, 1, 7),
            hour=_check("hour", hour, 0, 23),
            minute=_check("minute", minute, 0, 59),
            second=_check("second", second, 0, 59),
            hundredths=_check("hundredths", hundredths, 0, 99),
            deviation=parsed_deviation,
            clock_status=None if status == NOT_SPECIFIED else ClockStatus(status),
        )
        if result.is_fully_specified:
            # Rejects dates such as February 30th.
            result.to_datetime()
        return result

    @property
    def is_fully_specified(self) -> bool:
        """Whether the fields name a single point on the calendar."""
        return (
            self.year is not None
            and self.month is not None
            and 1 <= self.month <= 12
            and self.day is not None
            and 1 <= self.day <= 31
            and self.hour is not None
            and self.minute is not None
            and self.second is not None
        )

    @property
    def tzinfo(self) -> timezone | None:
        # DLMS defines deviation as local time minus UTC negated: CET is -60.
        if self.deviation is None:
            return None
        return timezone(timedelta(minutes=-self.deviation))

    def to_datetime(self) -> datetime:
        """Convert to a Python datetime.

        The result is timezone-aware when the meter reported a deviation and
        naive (meter local time) otherwise.
        """
        if not self.is_fully_specified:
            raise ValueError("COSEM date-time is not fully specified")
        assert self.year is not None and self.month is not None and self.day is not None  # noqa: S101
        assert self.hour is not None and self.minute is not None and self.second is not None  # noqa: S101
        return datetime(
            self.year,
            self.month,
            self.day,
            self.hour,
            self.minute,
            self.second,
            (self.hundredths or 0) * 10_000,
            tzinfo=self.tzinfo,
        )

    def to_text(self) -> str:
        """Render in ISO 8601 layout with open fields shown as ``*``.

        DST and last-day markers are shown in hex, e.g. ``****-FE-FE``.
        """
        text = (
            f"{_field(self.year, 4)}-{_field(self.month, 2)}-{_field(self.day, 2)}"
            f"T{_field(self.hour, 2)}:{_field(self.minute, 2)}:{_field(self.second, 2)}"
        )
        if self.hundredths is not None:
            text += f".{self.hundredths:02d}"
        if self.deviation is not None:
            offset = -self.deviation
            hours, minutes = divmod(abs(offset), 60)
            text += f"{'-' if offset < 0 else '+'}{hours:02d}:{minutes:02d}"
        return text

    def to_json(self) -> str:
        """ISO 8601 text for a fully specified value, :meth:`to_text` otherwise."""
        if self.is_fully_specified:
            return self.to_datetime().isoformat()
        return self.to_text()
