"""Terminal wire protocol: client frame classification and server messages."""

from __future__ import annotations

import json
import sys
from typing import Any

from codespace_agent.models.terminal import (
    ClientFrame,
    ExitStatus,
    IgnoredMessage,
    PingMessage,
    ResizeMessage,
    TerminalSize,
)

DEFAULT_SIZE = TerminalSize()
MAX_DIMENSION = 0xFFFF


def parse_client_frame(payload: str | bytes) -> ClientFrame:
    """Classify an inbound frame as terminal input or a control message.

    Text and binary frames are classified alike. A frame is only treated as
    a control message when it is brace-delimited; such a frame that fails to
    parse, or carries an unknown ``type``, becomes an :class:`IgnoredMessage`
    and must never reach the shell. Binary frames that are not valid UTF-8 are
    always input.
    """
    if isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw
    else:
        text, raw = payload, payload.encode("utf-8")
    candidate = text.rstrip()
    if not (candidate.startswith("{") and candidate.endswith("}")):
        return raw
    try:
        message = json.loads(candidate)
    except ValueError:
        return IgnoredMessage("malformed control message")
    kind = message.get("type")
    if kind == "resize":
        return _parse_resize(message)
    if kind == "ping":
        return PingMessage()
    return IgnoredMessage(f"unknown control message type {kind!r}")


def _parse_resize(message: dict[str, Any]) -> ClientFrame:
    cols = message.get("cols") or DEFAULT_SIZE.cols
    rows = message.get("rows") or DEFAULT_SIZE.rows
    for value in (cols, rows):
        if isinstance(value, bool) or not isinstance(value, int):
            return IgnoredMessage("resize dimensions must be integers")
        if not 0 < value <= MAX_DIMENSION:
            return IgnoredMessage("resize dimensions out of range")
    return ResizeMessage(TerminalSize(cols=cols, rows=rows))


def connected_message(session_id: str, cwd: str) -> dict[str, Any]:
    return {"type": "connected", "sessionId": session_id, "cwd": cwd, "platform": sys.platform}


def pong_message() -> dict[str, Any]:
    return {"type": "pong"}


def exit_message(status: ExitStatus) -> dict[str, Any]:
    return {"type": "exit", "exitCode": status.code, "signal": status.signal}


def error_message(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}
