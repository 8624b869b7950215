"""Data models for interactive terminal sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class SessionState(str, Enum):
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(frozen=True)
class TerminalSize:
    cols: int = 80
    rows: int = 30


@dataclass(frozen=True)
class ExitStatus:
    code: Optional[int]
    signal: Optional[int] = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        # asyncio reports death-by-signal as a negative return code
        if returncode < 0:
            return cls(code=None, signal=-returncode)
        return cls(code=returncode)


@dataclass(frozen=True)
class ResizeMessage:
    size: TerminalSize


@dataclass(frozen=True)
class PingMessage:
    pass


@dataclass(frozen=True)
class IgnoredMessage:
    reason: str


ControlMessage = Union[ResizeMessage, PingMessage]
ClientFrame = Union[ResizeMessage, PingMessage, IgnoredMessage, bytes]
