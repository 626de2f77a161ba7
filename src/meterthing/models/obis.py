"""OBIS registry codes."""

from __future__ import annotations

import re
from dataclasses import dataclass

# Accepts "1.0.1.8.0.255" as well as the IEC display form "1-0:1.8.0*255".
_DOTTED_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_DISPLAY_RE = re.compile(r"^(\d{1,3})-(\d{1,3}):(\d{1,3})\.(\d{1,3})\.(\d{1,3})\*(\d{1,3})$")


@dataclass(frozen=True, order=True)
class ObisCode:
    """Six-group identifier naming one measurement of a meter.

    Codes compare group by group, so sorting a collection of codes orders
    them the way meters usually list them.
    """

    a: int
    b: int
    c: int
    d: int
    e: int
    f: int

    def __post_init__(self) -> None:
        for group in (self.a, self.b, self.c, self.d, self.e, self.f):
            if not isinstance(group, int) or isinstance(group, bool) or not 0 <= group <= 255:
                raise ValueError(f"OBIS groups must be integers in 0..255, got {group!r}")

    @classmethod
    def parse(cls, text: str) -> ObisCode:
        """Parse a dotted (``a.b.c.d.e.f``) or display (``a-b:c.d.e*f``) code."""
        value = text.strip()
        match = _DOTTED_RE.match(value) or _DISPLAY_RE.match(value)
        if match is None:
            raise ValueError(f"Invalid OBIS code: {text!r}")
        return cls(*(int(group) for group in match.groups()))

    def __str__(self) -> str:
        return f"{self.a}.{self.b}.{self.c}.{self.d}.{self.e}.{self.f}"
