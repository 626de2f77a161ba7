"""JSON-lines replay decoder.

Stands in for a live meter decoder: every non-blank line is one poll cycle,
either a set of decoded registers::

    {"registers": {"1.0.1.8.0.255": {"value": {"type": "unsigned", "value": 1234}, "unit": "Wh"}}}

or a decode failure reported by whatever produced the file::

    {"error": "frame checksum mismatch"}

Lines that cannot be parsed become :class:`MeterDecodeError` elements, the
same way a live decoder reports a garbled frame.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from meterthing.exceptions import MeterDecodeError
from meterthing.ingestion.adapter import ReadingResult
from meterthing.models.data import Reading, Register
from meterthing.models.obis import ObisCode

_logger = logging.getLogger(__name__)


class _ReplayRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    registers: dict[str, Register] | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> _ReplayRecord:
        if (self.registers is None) == (self.error is None):
            raise ValueError("record needs exactly one of 'registers' or 'error'")
        return self


def parse_replay_line(line: str) -> ReadingResult:
    """Decode one replay line into a reading or a decode error."""
    try:
        record = _ReplayRecord.model_validate_json(line)
        if record.error is not None:
            return MeterDecodeError(record.error, raw=line)
        assert record.registers is not None  # noqa: S101
        return Reading((ObisCode.parse(code), register) for code, register in record.registers.items())
    except (ValidationError, ValueError) as exc:
        return MeterDecodeError(f"Invalid replay record: {exc}", raw=line)


def replay_readings(
    lines: Iterable[str],
    *,
    interval: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[ReadingResult]:
    """Yield one result per non-blank line, waiting ``interval`` seconds between polls."""
    first = True
    for line in lines:
        if not line.strip():
            continue
        if not first and interval > 0:
            sleep(interval)
        first = False
        result = parse_replay_line(line)
        if isinstance(result, MeterDecodeError):
            _logger.warning("Replay line rejected: %s", result)
        yield result
