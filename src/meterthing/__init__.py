"""meterthing - Expose smart meter readings as a live Web Thing."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("meterthing")
except PackageNotFoundError:
    __version__ = "0+local"
from meterthing.config import BridgeConfig
from meterthing.exceptions import (
    MeterConfigError,
    MeterDecodeError,
    MeterThingError,
    ThingInitError,
    UnknownPropertyError,
    ValueConversionError,
)
from meterthing.ingestion.adapter import NormalizedResult, ReadingResult, ReadingSource, normalized_readings
from meterthing.ingestion.normalize import DEFAULT_CONVERSIONS, ConversionTarget, convert_reading, normalize
from meterthing.models import CosemDateTime, ObisCode, Reading, Register
from meterthing.state.thing import Property, Thing
from meterthing.sync import SyncLoop, SyncState

__all__ = [
    "__version__",
    "BridgeConfig",
    "ConversionTarget",
    "CosemDateTime",
    "DEFAULT_CONVERSIONS",
    "MeterConfigError",
    "MeterDecodeError",
    "MeterThingError",
    "NormalizedResult",
    "ObisCode",
    "Property",
    "Reading",
    "ReadingResult",
    "ReadingSource",
    "Register",
    "SyncLoop",
    "SyncState",
    "Thing",
    "ThingInitError",
    "UnknownPropertyError",
    "ValueConversionError",
    "convert_reading",
    "normalize",
    "normalized_readings",
]
