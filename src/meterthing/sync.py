"""Synchronization loop.

Drains the normalized reading stream into a :class:`~meterthing.state.thing.Thing`.
The first reading defines the thing; every later reading updates the cached
property values and notifies subscribers. Any error ends the loop: there is
one meter and one thing, so there is nothing sensible to keep serving.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import Any

from meterthing._logfmt import summarize_for_log
from meterthing.exceptions import MeterThingError, ThingInitError
from meterthing.ingestion.adapter import NormalizedResult
from meterthing.models.data import Reading
from meterthing.state.thing import Property, Thing

_logger = logging.getLogger(__name__)


class SyncState(StrEnum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    STOPPED = "stopped"


class SyncLoop:
    """Applies readings to a thing, one whole reading at a time.

    Usage::

        loop = SyncLoop(normalized_readings(decoder))
        thing = loop.start()
        loop.run_in_thread()
    """

    def __init__(
        self,
        readings: Iterable[NormalizedResult],
        *,
        thing_factory: Callable[[Reading], Thing] = Thing.from_reading,
        on_stopped: Callable[[BaseException | None], None] | None = None,
    ) -> None:
        self._readings = iter(readings)
        self._thing_factory = thing_factory
        self._on_stopped = on_stopped
        self._state = SyncState.UNINITIALIZED
        self._thing: Thing | None = None
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None
        self.readings_applied = 0

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def thing(self) -> Thing:
        if self._thing is None:
            raise MeterThingError("Sync loop not started. Call start() first.")
        return self._thing

    @property
    def error(self) -> BaseException | None:
        """The fatal error that stopped the loop, if any."""
        return self._error

    def start(self) -> Thing:
        """Build the thing from the first reading and switch to running."""
        if self._state is not SyncState.UNINITIALIZED:
            raise MeterThingError(f"Sync loop already {self._state}")

        try:
            first = next(self._readings, None)
        except MeterThingError as exc:
            self._state = SyncState.STOPPED
            raise ThingInitError(f"Failed to receive initial reading: {exc}") from exc
        except BaseException:
            self._state = SyncState.STOPPED
            raise
        if first is None:
            self._state = SyncState.STOPPED
            raise ThingInitError("Reading source ended before the first reading")
        if isinstance(first, MeterThingError):
            self._state = SyncState.STOPPED
            raise ThingInitError(f"Failed to receive initial reading: {first}") from first

        try:
            self._thing = self._thing_factory(first)
        except BaseException:
            self._state = SyncState.STOPPED
            raise
        self._state = SyncState.RUNNING
        return self._thing

    def apply(self, reading: Reading) -> None:
        """Commit every register of ``reading`` and notify, under the write lock.

        All codes are resolved before anything is written, so an unknown code
        leaves the thing untouched.
        """
        thing = self.thing
        with thing.write():
            updates: list[tuple[Property, Any]] = [
                (thing.find_property(str(code)), register.to_json()) for code, register in reading.items()
            ]
            for prop, value in updates:
                prop.set_cached_value(value)
                thing.property_notify(prop.name, value)
        self.readings_applied += 1
        _logger.debug("Applied reading %s", summarize_for_log(reading))

    def run(self) -> None:
        """Apply readings until the source ends or an error stops the loop."""
        if self._state is SyncState.UNINITIALIZED:
            try:
                self.start()
            except BaseException as exc:
                self._stop(exc)
                raise
        if self._state is not SyncState.RUNNING:
            raise MeterThingError(f"Sync loop is {self._state}")

        try:
            for result in self._readings:
                if isinstance(result, MeterThingError):
                    raise result
                self.apply(result)
        except BaseException as exc:
            self._stop(exc)
            raise
        self._stop(None)

    def _stop(self, error: BaseException | None) -> None:
        self._state = SyncState.STOPPED
        self._error = error
        if error is None:
            _logger.info("Reading source ended after %d readings", self.readings_applied)
        else:
            _logger.error("Sync loop stopped after %d readings: %s", self.readings_applied, error)
        if self._on_stopped is not None:
            self._on_stopped(error)

    def run_in_thread(self) -> threading.Thread:
        """Run :meth:`run` on a daemon thread; the outcome is reported via ``error``/``on_stopped``."""
        if self._thread is not None:
            raise MeterThingError("Sync loop thread already started")
        thread = threading.Thread(target=self._run_reporting, name="meterthing-sync", daemon=True)
        self._thread = thread
        thread.start()
        return thread

    def _run_reporting(self) -> None:
        try:
            self.run()
        except Exception:
            # Already recorded in self._error and passed to on_stopped.
            _logger.debug("Sync loop thread exiting", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
