"""Data models for meter readings."""

from meterthing.models.cosem_datetime import ClockStatus, CosemDateTime
from meterthing.models.data import (
    Boolean,
    Data,
    DateTime,
    Float,
    Integer,
    Null,
    OctetString,
    Reading,
    Register,
    Unsigned,
    Utf8String,
    VisibleString,
)
from meterthing.models.obis import ObisCode

__all__ = [
    "Boolean",
    "ClockStatus",
    "CosemDateTime",
    "Data",
    "DateTime",
    "Float",
    "Integer",
    "Null",
    "ObisCode",
    "OctetString",
    "Reading",
    "Register",
    "Unsigned",
    "Utf8String",
    "VisibleString",
]
