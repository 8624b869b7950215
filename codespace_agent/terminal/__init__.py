"""Interactive terminal sessions over WebSocket."""

from codespace_agent.terminal.connection import (
    ConnectionClosed,
    TerminalConnection,
    WebSocketConnection,
)
from codespace_agent.terminal.manager import TerminalSessionManager
from codespace_agent.terminal.session import TerminalSession

__all__ = [
    "ConnectionClosed",
    "TerminalConnection",
    "TerminalSession",
    "TerminalSessionManager",
    "WebSocketConnection",
]
