"""
Socket.IO connection manager for the host chat server.

Waits for the server's `ServerInfo` event before resolving connect(). Every
inbound event passes through the intercept points before it reaches the
ordinary event handlers.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import socketio

from chatlink.models.events import HostEvent
from chatlink.transport.hooks import HookRegistry

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Any], None]


class SocketIOManager:
    def __init__(
        self,
        server_url: str,
        transports: Optional[list[str]] = None,
        ready_timeout: float = 15.0,
    ):
        self._server_url = server_url
        self._transports = transports or ["websocket"]
        self._ready_timeout = ready_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._connected = False
        self._event_handlers: list[EventHandler] = []
        self.hooks = HookRegistry()

    @property
    def connected(self) -> bool:
        return self._connected and self._sio is not None and self._sio.connected

    def add_event_handler(self, handler: EventHandler) -> Callable[[], None]:
        """Add an event handler. Returns a cleanup function."""
        self._event_handlers.append(handler)
        def remove() -> None:
            try:
                self._event_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def dispatch(self, event: str, data: Any) -> None:
        """Run an inbound event through the hooks, then the event handlers."""
        def deliver(args: tuple[Any, ...]) -> None:
            for handler in list(self._event_handlers):
                handler(event, args[0] if args else None)

        self.hooks.call(event, (data,), deliver)

    async def connect(self) -> None:
        if self._sio and self._sio.connected:
            return

        self._sio = socketio.AsyncClient()
        ready_event = asyncio.Event()

        @self._sio.on(HostEvent.SERVER_INFO)
        async def on_server_info(*_args: Any) -> None:
            self._connected = True
            ready_event.set()

        @self._sio.on("*")
        async def on_any(event: str, *args: Any) -> None:
            try:
                self.dispatch(event, args[0] if args else None)
            except Exception:
                logger.exception(f"Unhandled error while dispatching {event}")

        @self._sio.event
        async def disconnect(_reason: str = "") -> None:
            self._connected = False

        await self._sio.connect(self._server_url, transports=self._transports)

        try:
            await asyncio.wait_for(ready_event.wait(), timeout=self._ready_timeout)
        except asyncio.TimeoutError:
            await self._sio.disconnect()
            raise TimeoutError(f"Timed out waiting for '{HostEvent.SERVER_INFO}' after {self._ready_timeout}s")

    def emit(self, event: str, data: Any) -> None:
        """Emit a host event. Fire-and-forget; failures are logged."""
        if not self._sio or not self._sio.connected:
            raise RuntimeError("Socket.IO not connected")

        async def _do_emit() -> None:
            try:
                await self._sio.emit(event, data)  # type: ignore[union-attr]
            except Exception as e:
                logger.error(f"Emit failed for {event}: {e}")

        asyncio.get_running_loop().create_task(_do_emit())

    async def emit_and_wait(
        self,
        event: str,
        data: Any,
        response_event: str,
        timeout: float = 10.0,
    ) -> Any:
        """Emit and wait for the next `response_event`, returning its data."""
        if not self._sio or not self._sio.connected:
            raise RuntimeError("Socket.IO not connected")

        result_event = asyncio.Event()
        result: list[Any] = []

        def response_handler(evt: str, raw: Any) -> None:
            if evt == response_event and not result_event.is_set():
                result.append(raw)
                result_event.set()

        remove_handler = self.add_event_handler(response_handler)
        await self._sio.emit(event, data)

        try:
            await asyncio.wait_for(result_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"Timeout waiting for {response_event} response")
        finally:
            remove_handler()

        return result[0]

    async def disconnect(self) -> None:
        self._connected = False
        if self._sio:
            await self._sio.disconnect()
            self._sio = None
