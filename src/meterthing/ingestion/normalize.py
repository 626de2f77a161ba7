"""Normalization helpers.

Some registers arrive as plain octet strings although they carry richer
values: the meter clock is a COSEM date-time and identifiers are text. The
conversion table says which codes get which treatment.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from meterthing.exceptions import ValueConversionError
from meterthing.models.cosem_datetime import CosemDateTime
from meterthing.models.data import Data, DateTime, OctetString, Reading, Utf8String
from meterthing.models.obis import ObisCode


class ConversionTarget(StrEnum):
    DATE_TIME = "date_time"
    UTF8_STRING = "utf8_string"


DEFAULT_CONVERSIONS: Mapping[ObisCode, ConversionTarget] = {
    # Clock
    ObisCode(0, 0, 1, 0, 0, 255): ConversionTarget.DATE_TIME,
    # Logical device name
    ObisCode(0, 0, 42, 0, 0, 255): ConversionTarget.UTF8_STRING,
    # Meter serial number
    ObisCode(0, 0, 96, 1, 0, 255): ConversionTarget.UTF8_STRING,
}


def to_date_time(code: ObisCode, data: Data) -> Data:
    if not isinstance(data, OctetString):
        return data
    try:
        return DateTime(value=CosemDateTime.parse(data.value))
    except ValueError as exc:
        raise ValueConversionError(
            f"Register {code} is not a valid date-time: {exc}",
            code=code,
            target=ConversionTarget.DATE_TIME,
        ) from exc


def to_utf8_string(code: ObisCode, data: Data) -> Data:
    if not isinstance(data, OctetString):
        return data
    try:
        return Utf8String(value=data.value.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ValueConversionError(
            f"Register {code} is not valid UTF-8: {exc}",
            code=code,
            target=ConversionTarget.UTF8_STRING,
        ) from exc


_CONVERTERS = {
    ConversionTarget.DATE_TIME: to_date_time,
    ConversionTarget.UTF8_STRING: to_utf8_string,
}


def normalize(
    code: ObisCode,
    data: Data,
    conversions: Mapping[ObisCode, ConversionTarget] = DEFAULT_CONVERSIONS,
) -> Data:
    """Convert ``data`` to the type the table assigns to ``code``.

    Only octet strings are converted, so applying this twice is the same as
    applying it once. Values of unlisted codes pass through unchanged.
    """
    target = conversions.get(code)
    if target is None:
        return data
    return _CONVERTERS[target](code, data)


def convert_reading(
    reading: Reading,
    conversions: Mapping[ObisCode, ConversionTarget] = DEFAULT_CONVERSIONS,
) -> Reading:
    """Apply :func:`normalize` to every listed code present in ``reading``."""
    for code in conversions:
        reading = reading.convert(code, lambda data, code=code: normalize(code, data, conversions))
    return reading


def parse_conversions(text: str) -> dict[ObisCode, ConversionTarget]:
    """Parse ``"0.0.1.0.0.255=date_time,0.0.96.1.0.255=utf8_string"``."""
    result: dict[ObisCode, ConversionTarget] = {}
    for item in text.split(","):
        entry = item.strip()
        if not entry:
            continue
        code_text, sep, target_text = entry.partition("=")
        if not sep:
            raise ValueError(f"Conversion entry must look like CODE=TARGET, got {entry!r}")
        result[ObisCode.parse(code_text)] = ConversionTarget(target_text.strip().lower())
    return result
