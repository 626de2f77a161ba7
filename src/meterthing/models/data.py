"""Register values as reported by the meter.

:data:`Data` is a closed union of the encodings a decoder can produce. Each
variant carries a ``type`` tag so pydantic can pick the right model when
readings are loaded from JSON, and each knows how to turn itself into a
plain JSON value for the thing layer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meterthing.models.cosem_datetime import CosemDateTime
from meterthing.models.obis import ObisCode


class _DataBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    json_type: ClassVar[str] = "string"
    """JSON schema type the value serializes to."""

    def to_json(self) -> Any:
        return getattr(self, "value", None)


class OctetString(_DataBase):
    type: Literal["octet_string"] = "octet_string"
    value: bytes

    @field_validator("value", mode="before")
    @classmethod
    def _from_hex(cls, value: Any) -> Any:
        # JSON carries octet strings as hex text.
        if isinstance(value, str):
            return bytes.fromhex(value)
        return value

    def to_json(self) -> str:
        return self.value.hex()


class Utf8String(_DataBase):
    type: Literal["utf8_string"] = "utf8_string"
    value: str


class VisibleString(_DataBase):
    type: Literal["visible_string"] = "visible_string"
    value: str


class Integer(_DataBase):
    json_type: ClassVar[str] = "integer"

    type: Literal["integer"] = "integer"
    value: int


class Unsigned(_DataBase):
    json_type: ClassVar[str] = "integer"

    type: Literal["unsigned"] = "unsigned"
    value: int = Field(ge=0)


class Float(_DataBase):
    json_type: ClassVar[str] = "number"

    type: Literal["float"] = "float"
    value: float


class Boolean(_DataBase):
    json_type: ClassVar[str] = "boolean"

    type: Literal["boolean"] = "boolean"
    value: bool


class DateTime(_DataBase):
    type: Literal["date_time"] = "date_time"
    value: CosemDateTime

    def to_json(self) -> Any:
        return self.value.to_json()


class Null(_DataBase):
    json_type: ClassVar[str] = "null"

    type: Literal["null"] = "null"

    def to_json(self) -> None:
        return None


Data = Annotated[
    OctetString | Utf8String | VisibleString | Integer | Unsigned | Float | Boolean | DateTime | Null,
    Field(discriminator="type"),
]


class Register(BaseModel):
    """One register of a reading: its value and, for physical quantities, a unit."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: Data
    unit: str | None = None

    def to_json(self) -> Any:
        return self.value.to_json()


class Reading(Mapping[ObisCode, Register]):
    """One complete poll of the meter, in the order the meter reported it.

    Readings are immutable; :meth:`convert` returns a new reading.
    """

    __slots__ = ("_registers",)

    def __init__(self, registers: Mapping[ObisCode, Register] | Iterable[tuple[ObisCode, Register]] = ()) -> None:
        self._registers: dict[ObisCode, Register] = dict(registers)

    def __getitem__(self, code: ObisCode) -> Register:
        return self._registers[code]

    def __iter__(self) -> Iterator[ObisCode]:
        return iter(self._registers)

    def __len__(self) -> int:
        return len(self._registers)

    def __repr__(self) -> str:
        inner = ", ".join(f"{code}: {register!r}" for code, register in self._registers.items())
        return f"Reading({{{inner}}})"

    def convert(self, code: ObisCode, fn: Callable[[Data], Data]) -> Reading:
        """Return a copy with ``fn`` applied to the value under ``code``.

        The unit is kept. Codes that are not part of the reading are ignored.
        """
        register = self._registers.get(code)
        if register is None:
            return self
        registers = dict(self._registers)
        registers[code] = register.model_copy(update={"value": fn(register.value)})
        return Reading(registers)
