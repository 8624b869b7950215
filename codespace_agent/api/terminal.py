"""WebSocket endpoint for interactive terminals."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket
from fastapi.responses import JSONResponse

from codespace_agent.errors import Unauthorized
from codespace_agent.terminal.connection import WebSocketConnection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["terminal"])

POLICY_VIOLATION = 1008
DENIAL_EXTENSION = "websocket.http.response"


async def _deny(websocket: WebSocket) -> None:
    """Reject the upgrade with 401 before any handshake is completed."""
    if DENIAL_EXTENSION in websocket.scope.get("extensions", {}):
        body = {"error": Unauthorized("Unauthorized").to_dict()}
        await websocket.send_denial_response(
            JSONResponse(body, status_code=401, headers={"WWW-Authenticate": "Bearer"})
        )
    else:
        await websocket.close(code=POLICY_VIOLATION)


@router.websocket("/ws/terminal")
async def terminal(websocket: WebSocket) -> None:
    gate = websocket.app.state.auth_gate
    if not gate.authorize_header(websocket.headers.get("authorization")):
        logger.warning("Unauthorized WebSocket connection attempt from %s", websocket.client)
        await _deny(websocket)
        return
    await websocket.accept()
    await websocket.app.state.sessions.serve(WebSocketConnection(websocket))
