"""Custom exception hierarchy for meterthing."""

from __future__ import annotations

from typing import Any


class MeterThingError(Exception):
    """Base exception for all meterthing errors."""


class MeterConfigError(MeterThingError):
    """Invalid or missing configuration."""


class MeterDecodeError(MeterThingError):
    """A poll cycle could not be read or decoded into a reading.

    Decoders hand these over as elements of the reading sequence instead of
    raising, so the consumer sees exactly which poll failed.
    """

    def __init__(self, message: str, *, raw: Any = None) -> None:
        self.raw = raw
        super().__init__(message)


class ValueConversionError(MeterThingError):
    """A register value could not be normalized to its target type."""

    def __init__(self, message: str, *, code: Any = None, target: Any = None) -> None:
        self.code = code
        self.target = target
        super().__init__(message)


class UnknownPropertyError(MeterThingError, LookupError):
    """A reading referenced a property the thing was not initialized with."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown property: {name}")


class ThingInitError(MeterThingError):
    """The thing could not be built from the first reading."""
