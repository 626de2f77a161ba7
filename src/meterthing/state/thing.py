"""Observable thing model.

The thing is the single shared object between the sync loop, which writes a
whole reading at a time, and the server layer, which reads values and
listens for change notifications. All access to the property set goes
through one :class:`~meterthing.state.lock.ReadWriteLock`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractContextManager
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from meterthing.exceptions import ThingInitError, UnknownPropertyError
from meterthing.models.data import Float, Integer, Reading, Register, Unsigned
from meterthing.state.lock import ReadWriteLock

_logger = logging.getLogger(__name__)

WEBTHING_CONTEXT = "https://webthings.io/schemas"

PropertyHandler = Callable[[str, Any], None]
"""Called with ``(name, new_value)`` after a value was committed."""


class Property(BaseModel):
    """A read-only property exposing one meter register."""

    model_config = ConfigDict(extra="forbid")

    name: str
    value: Any = None
    unit: str | None = None
    read_only: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_register(cls, name: str, register: Register) -> Property:
        """Build a property whose type descriptor follows the register's shape."""
        metadata: dict[str, Any] = {
            "title": name,
            "type": register.value.json_type,
            "readOnly": True,
        }
        if isinstance(register.value, (Integer, Unsigned, Float)):
            metadata["@type"] = "LevelProperty"
        if register.unit is not None:
            metadata["unit"] = register.unit
        return cls(name=name, value=register.to_json(), unit=register.unit, metadata=metadata)

    def set_cached_value(self, value: Any) -> Any:
        """Replace the cached value and return the previous one.

        Callers hold the owning thing's write lock. No notification is sent.
        """
        old = self.value
        self.value = value
        return old

    def as_property_description(self) -> dict[str, Any]:
        description = dict(self.metadata)
        description["links"] = [{"rel": "property", "href": f"/properties/{self.name}"}]
        return description


class Thing:
    """A device with a fixed, ordered set of read-only properties."""

    def __init__(
        self,
        id_: str,
        title: str,
        properties: Iterable[Property],
        *,
        types: Iterable[str] = (),
        description: str | None = None,
    ) -> None:
        self.id = id_
        self.title = title
        self.types = tuple(types)
        self.description_text = description
        self._properties: dict[str, Property] = {}
        for prop in properties:
            if prop.name in self._properties:
                raise ThingInitError(f"Duplicate property: {prop.name}")
            self._properties[prop.name] = prop
        self._lock = ReadWriteLock()
        self._subscribers: list[PropertyHandler] = []
        self._subscribers_lock = threading.Lock()

    @classmethod
    def from_reading(
        cls,
        reading: Reading | None,
        *,
        id_: str = "urn:dev:ops:smart-meter-1",
        title: str = "Smart Meter",
        types: Iterable[str] = ("MultiLevelSensor",),
        description: str | None = "A smart energy meter",
    ) -> Thing:
        """Create a thing with one property per register of ``reading``."""
        if not reading:
            raise ThingInitError("Cannot build a thing from an empty reading")
        properties = [Property.from_register(str(code), register) for code, register in reading.items()]
        _logger.info("Initialized thing %s with %d properties", id_, len(properties))
        return cls(id_, title, properties, types=types, description=description)

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def read(self) -> AbstractContextManager[None]:
        """Shared access; hold it across lookups that must see one reading."""
        return self._lock.read()

    def write(self) -> AbstractContextManager[None]:
        """Exclusive access for applying one reading."""
        return self._lock.write()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def property_names(self) -> tuple[str, ...]:
        return tuple(self._properties)

    def properties(self) -> Iterator[Property]:
        return iter(self._properties.values())

    def find_property(self, name: str) -> Property:
        try:
            return self._properties[name]
        except KeyError:
            raise UnknownPropertyError(name) from None

    def get_value(self, name: str) -> Any:
        with self.read():
            return self.find_property(name).value

    def snapshot(self) -> dict[str, Any]:
        """All property values as of a single committed reading."""
        with self.read():
            return {name: prop.value for name, prop in self._properties.items()}

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, handler: PropertyHandler) -> Callable[[], None]:
        """Register ``handler`` for change notifications; returns an unsubscribe callable."""
        with self._subscribers_lock:
            self._subscribers.append(handler)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if handler in self._subscribers:
                    self._subscribers.remove(handler)

        return unsubscribe

    def property_notify(self, name: str, value: Any) -> None:
        """Tell every subscriber that ``name`` now holds ``value``.

        Only call this once the value has been committed with
        :meth:`Property.set_cached_value`. The sync loop notifies while it
        holds the write lock, so handlers must hand work off (e.g. to an
        event loop) instead of reading the thing synchronously.
        """
        with self._subscribers_lock:
            handlers = list(self._subscribers)
        for handler in handlers:
            try:
                handler(name, value)
            except Exception:
                _logger.exception("Property handler failed for %s", name)

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------

    def description(self) -> dict[str, Any]:
        """Web Thing description of this thing."""
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "@context": WEBTHING_CONTEXT,
            "properties": {prop.name: prop.as_property_description() for prop in self._properties.values()},
            "links": [
                {"rel": "properties", "href": "/properties"},
                {"rel": "alternate", "href": "/ws"},
            ],
        }
        if self.types:
            result["@type"] = list(self.types)
        if self.description_text:
            result["description"] = self.description_text
        return result
