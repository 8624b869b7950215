"""Duplex client connections for terminal sessions."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol, Union

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)

Payload = Union[str, bytes]

NORMAL_CLOSURE = 1000
GOING_AWAY = 1001
INTERNAL_ERROR = 1011
TRY_AGAIN_LATER = 1013


class ConnectionClosed(Exception):
    """Raised when sending on a connection the peer has already left."""


class TerminalConnection(Protocol):
    @property
    def is_open(self) -> bool:
        ...

    async def receive(self) -> Optional[Payload]:
        """Return the next frame, or ``None`` once the peer has gone."""
        ...

    async def send_bytes(self, data: bytes) -> None:
        ...

    async def send_json(self, data: dict[str, Any]) -> None:
        ...

    async def close(self, code: int = NORMAL_CLOSURE) -> None:
        ...


class WebSocketConnection(TerminalConnection):
    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._open = True

    @property
    def is_open(self) -> bool:
        return (
            self._open
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def receive(self) -> Optional[Payload]:
        if not self.is_open:
            return None
        try:
            message = await self._websocket.receive()
        except (RuntimeError, WebSocketDisconnect):
            self._open = False
            return None
        if message["type"] == "websocket.disconnect":
            self._open = False
            return None
        if message.get("bytes") is not None:
            return message["bytes"]
        return message.get("text") or ""

    async def send_bytes(self, data: bytes) -> None:
        await self._send({"type": "websocket.send", "bytes": data})

    async def send_json(self, data: dict[str, Any]) -> None:
        await self._send({"type": "websocket.send", "text": json.dumps(data)})

    async def _send(self, message: dict[str, Any]) -> None:
        if not self.is_open:
            raise ConnectionClosed("connection is closed")
        try:
            await self._websocket.send(message)
        except (RuntimeError, WebSocketDisconnect, OSError) as exc:
            self._open = False
            raise ConnectionClosed(str(exc)) from exc

    async def close(self, code: int = NORMAL_CLOSURE) -> None:
        self._open = False
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self._websocket.close(code=code)
        except (RuntimeError, WebSocketDisconnect, OSError):
            logger.debug("WebSocket already closed", exc_info=True)
