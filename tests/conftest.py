from __future__ import annotations

import struct

from meterthing.models import ObisCode, OctetString, Reading, Register, Unsigned

ENERGY_IMPORT = ObisCode(1, 0, 1, 8, 0, 255)
SERIAL_NUMBER = ObisCode(0, 0, 96, 1, 0, 255)
CLOCK = ObisCode(0, 0, 1, 0, 0, 255)


def cosem_bytes(
    year: int = 2024,
    month: int = 3,
    day: int = 15,
    weekday: int = 5,
    hour: int = 14,
    minute: int = 30,
    second: int = 5,
    hundredths: int = 0,
    deviation: int = -60,
    status: int = 0x80,
) -> bytes:
    return struct.pack(">HBBBBBBBhB", year, month, day, weekday, hour, minute, second, hundredths, deviation, status)


def meter_reading(serial: bytes = b"SN12345", energy: int = 1000, clock: bytes | None = None) -> Reading:
    registers = [
        (ENERGY_IMPORT, Register(value=Unsigned(value=energy), unit="Wh")),
        (SERIAL_NUMBER, Register(value=OctetString(value=serial))),
    ]
    if clock is not None:
        registers.append((CLOCK, Register(value=OctetString(value=clock))))
    return Reading(registers)
