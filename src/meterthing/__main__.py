"""Run the bridge: replayed readings in, a Web Thing out.

Usage::

    export METERTHING_SOURCE=readings.jsonl
    python -m meterthing --port 8888 --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from collections.abc import Iterator
from typing import TextIO

from aiohttp import web

from meterthing.config import BridgeConfig
from meterthing.exceptions import MeterConfigError, MeterThingError
from meterthing.ingestion.adapter import normalized_readings
from meterthing.ingestion.replay import replay_readings
from meterthing.models.data import Reading
from meterthing.server import create_app
from meterthing.state.thing import Thing
from meterthing.sync import SyncLoop

_logger = logging.getLogger("meterthing")


@contextlib.contextmanager
def _open_source(path: str) -> Iterator[TextIO]:
    if path == "-":
        yield sys.stdin
        return
    with open(path, encoding="utf-8") as handle:
        yield handle


async def serve(config: BridgeConfig, lines: TextIO) -> int:
    """Serve the thing until the reading source ends or fails; returns an exit code."""
    loop = asyncio.get_running_loop()
    stopped = asyncio.Event()

    def thing_factory(reading: Reading) -> Thing:
        return Thing.from_reading(
            reading,
            id_=config.thing_id,
            title=config.title,
            types=config.types,
            description=config.description,
        )

    sync = SyncLoop(
        normalized_readings(replay_readings(lines, interval=config.replay_interval), config.conversions),
        thing_factory=thing_factory,
        on_stopped=lambda _error: loop.call_soon_threadsafe(stopped.set),
    )

    _logger.info("Waiting for the first reading from %s…", config.source)
    thing = await loop.run_in_executor(None, sync.start)

    runner = web.AppRunner(create_app(thing))
    await runner.setup()
    try:
        site = web.TCPSite(runner, config.host, config.port)
        await site.start()
        _logger.info("Serving %s on http://%s:%d", thing.id, config.host, config.port)
        sync.run_in_thread()
        await stopped.wait()
    finally:
        await runner.cleanup()

    if sync.error is not None:
        _logger.error("Lost the meter data source: %s", sync.error)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="meterthing", description="Expose smart meter readings as a Web Thing")
    parser.add_argument("--source", help="JSON-lines reading file, '-' for stdin (env METERTHING_SOURCE)")
    parser.add_argument("--host", help="Bind address (env METERTHING_HOST)")
    parser.add_argument("--port", type=int, help="HTTP port (env METERTHING_PORT)")
    parser.add_argument("--interval", type=float, help="Seconds between replayed readings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.source is not None:
        overrides["source"] = args.source
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.interval is not None:
        overrides["replay_interval"] = args.interval

    try:
        config = BridgeConfig.from_env(**overrides)
    except MeterConfigError as exc:
        parser.error(str(exc))

    try:
        with _open_source(config.source) as lines:
            return asyncio.run(serve(config, lines))
    except MeterThingError as exc:
        _logger.error("%s", exc)
        return 1
    except OSError as exc:
        _logger.error("I/O failure: %s", exc)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
