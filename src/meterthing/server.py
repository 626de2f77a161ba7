"""HTTP/WebSocket exposure of a thing.

Serves the Web Thing description and property values, and pushes a
``propertyStatus`` message to every WebSocket client whenever the sync loop
commits a value. Notifications arrive on the sync thread and are handed to
the event loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from aiohttp import WSMsgType, web

from meterthing.exceptions import UnknownPropertyError
from meterthing.state.thing import Thing

_logger = logging.getLogger(__name__)


DEFAULT_MAX_PENDING = 256


class NotificationHub:
    """Fans property notifications out to per-connection queues on one event loop.

    Each queue holds at most ``max_pending`` messages; a client that falls
    behind loses its oldest messages rather than growing without bound.
    """

    def __init__(
        self,
        thing: Thing,
        loop: asyncio.AbstractEventLoop,
        *,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        self._loop = loop
        self._max_pending = max_pending
        self._queues: set[asyncio.Queue[dict[str, Any]]] = set()
        self._unsubscribe: Callable[[], None] | None = thing.subscribe(self._on_property)

    def _on_property(self, name: str, value: Any) -> None:
        message = {"messageType": "propertyStatus", "data": {name: value}}
        self._loop.call_soon_threadsafe(self._broadcast, message)

    def _broadcast(self, message: dict[str, Any]) -> None:
        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
                _logger.debug("WebSocket client is behind, dropped oldest notification")
            queue.put_nowait(message)

    def connect(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._max_pending)
        self._queues.add(queue)
        return queue

    def disconnect(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        self._queues.discard(queue)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._queues.clear()


THING_KEY = web.AppKey("thing", Thing)
HUB_KEY = web.AppKey("hub", NotificationHub)


async def _handle_thing(request: web.Request) -> web.Response:
    return web.json_response(request.app[THING_KEY].description())


async def _handle_properties(request: web.Request) -> web.Response:
    return web.json_response(request.app[THING_KEY].snapshot())


async def _handle_property(request: web.Request) -> web.Response:
    name = request.match_info["name"]
    try:
        value = request.app[THING_KEY].get_value(name)
    except UnknownPropertyError:
        raise web.HTTPNotFound(text=f"Unknown property: {name}") from None
    return web.json_response({name: value})


async def _handle_property_put(request: web.Request) -> web.Response:
    name = request.match_info["name"]
    # Unknown names are still a 404; known ones are reported, never written.
    try:
        request.app[THING_KEY].find_property(name)
    except UnknownPropertyError:
        raise web.HTTPNotFound(text=f"Unknown property: {name}") from None
    raise web.HTTPForbidden(text=f"Property {name} is read-only")


async def _pump(ws: web.WebSocketResponse, queue: asyncio.Queue[dict[str, Any]]) -> None:
    while not ws.closed:
        message = await queue.get()
        try:
            await ws.send_json(message)
        except ConnectionResetError:
            _logger.debug("WebSocket client went away while sending")
            return


async def _handle_ws(request: web.Request) -> web.WebSocketResponse:
    ws = web.WebSocketResponse()
    hub = request.app[HUB_KEY]
    # Subscribe before the handshake completes so no commit can slip past.
    queue = hub.connect()
    sender: asyncio.Task[None] | None = None
    try:
        await ws.prepare(request)
        sender = asyncio.create_task(_pump(ws, queue))
        _logger.debug("WebSocket client connected remote=%s", request.remote)
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                await ws.send_json(
                    {"messageType": "error", "data": {"status": "403 Forbidden", "message": "Properties are read-only"}}
                )
            elif msg.type == WSMsgType.ERROR:
                _logger.debug("WebSocket connection closed with exception %s", ws.exception())
    finally:
        hub.disconnect(queue)
        if sender is not None:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender
        _logger.debug("WebSocket client disconnected remote=%s", request.remote)
    return ws


async def _notification_hub(app: web.Application) -> AsyncIterator[None]:
    hub = NotificationHub(app[THING_KEY], asyncio.get_running_loop())
    app[HUB_KEY] = hub
    yield
    hub.close()


def create_app(thing: Thing) -> web.Application:
    """Build the aiohttp application serving ``thing``."""
    app = web.Application()
    app[THING_KEY] = thing
    app.router.add_get("/", _handle_thing)
    app.router.add_get("/properties", _handle_properties)
    app.router.add_get("/properties/{name}", _handle_property)
    app.router.add_put("/properties/{name}", _handle_property_put)
    app.router.add_get("/ws", _handle_ws)
    app.cleanup_ctx.append(_notification_hub)
    return app
