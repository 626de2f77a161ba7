"""Reading adapter.

Wraps the decoder's result stream and normalizes every reading as it passes
through. One element in, one element out: the adapter never skips, buffers
or reorders polls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TypeAlias

from meterthing._logfmt import summarize_for_log
from meterthing.exceptions import MeterDecodeError, ValueConversionError
from meterthing.ingestion.normalize import DEFAULT_CONVERSIONS, ConversionTarget, convert_reading
from meterthing.models.data import Reading
from meterthing.models.obis import ObisCode

_logger = logging.getLogger(__name__)

ReadingResult: TypeAlias = Reading | MeterDecodeError
"""What a decoder produces per poll cycle."""

NormalizedResult: TypeAlias = Reading | MeterDecodeError | ValueConversionError
"""What the adapter produces per poll cycle."""

ReadingSource: TypeAlias = Iterable[ReadingResult]


def normalized_readings(
    source: ReadingSource,
    conversions: Mapping[ObisCode, ConversionTarget] = DEFAULT_CONVERSIONS,
) -> Iterator[NormalizedResult]:
    """Yield each element of ``source`` with its registers normalized.

    Decode errors are passed on as elements. A reading whose conversion
    fails is replaced by the :class:`ValueConversionError`, so none of its
    registers reach the consumer.
    """
    for result in source:
        if isinstance(result, MeterDecodeError):
            _logger.debug("Decoder reported error: %s", result)
            yield result
            continue
        try:
            reading = convert_reading(result, conversions)
        except ValueConversionError as exc:
            _logger.debug("Reading conversion failed: %s", exc)
            yield exc
            continue
        _logger.debug("Normalized reading %s", summarize_for_log(reading))
        yield reading
