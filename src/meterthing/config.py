"""Bridge configuration for meterthing."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from meterthing.exceptions import MeterConfigError
from meterthing.ingestion.normalize import DEFAULT_CONVERSIONS, ConversionTarget, parse_conversions
from meterthing.models.obis import ObisCode


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    Parameters
    ----------
    host : str
        Interface the HTTP server binds to.
    port : int
        HTTP server port.
    thing_id : str
        Stable URI identifying the thing.
    title : str
        Display name of the thing.
    description : str or None
        Human readable description of the thing.
    types : tuple of str
        Web Thing ``@type`` tags.
    source : str
        Path of the JSON-lines replay file, or ``"-"`` for stdin.
    replay_interval : float
        Seconds to wait between replayed readings.
    conversions : Mapping[ObisCode, ConversionTarget]
        Which octet-string registers to decode as date-time or text.
    """

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8888
    thing_id: str = "urn:dev:ops:smart-meter-1"
    title: str = "Smart Meter"
    description: str | None = "A smart energy meter"
    types: tuple[str, ...] = ("MultiLevelSensor",)
    source: str = "-"
    replay_interval: float = 0.0
    conversions: Mapping[ObisCode, ConversionTarget] = dataclasses.field(
        default_factory=lambda: dict(DEFAULT_CONVERSIONS)
    )

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise MeterConfigError(f"Port is invalid: {self.port}")
        if self.replay_interval < 0:
            raise MeterConfigError(f"Replay interval must not be negative: {self.replay_interval}")
        if not self.thing_id.strip():
            raise MeterConfigError("Thing id must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from ``METERTHING_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        MeterConfigError
            When a variable cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "METERTHING_HOST": "host",
            "METERTHING_THING_ID": "thing_id",
            "METERTHING_TITLE": "title",
            "METERTHING_DESCRIPTION": "description",
            "METERTHING_SOURCE": "source",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        port_env = env.get("METERTHING_PORT")
        if port_env is not None and "port" not in overrides:
            try:
                config_kwargs["port"] = int(port_env)
            except ValueError:
                raise MeterConfigError(f"Port is invalid: {port_env!r}") from None

        interval_env = env.get("METERTHING_REPLAY_INTERVAL")
        if interval_env is not None and "replay_interval" not in overrides:
            try:
                config_kwargs["replay_interval"] = float(interval_env)
            except ValueError:
                raise MeterConfigError(f"Replay interval is invalid: {interval_env!r}") from None

        types_env = env.get("METERTHING_TYPES")
        if types_env is not None and "types" not in overrides:
            config_kwargs["types"] = tuple(t.strip() for t in types_env.split(",") if t.strip())

        conversions_env = env.get("METERTHING_CONVERSIONS")
        if conversions_env is not None and "conversions" not in overrides:
            try:
                config_kwargs["conversions"] = parse_conversions(conversions_env)
            except ValueError as exc:
                raise MeterConfigError(f"Conversions are invalid: {exc}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
