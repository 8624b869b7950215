"""Shared data models for the codespace agent."""

from codespace_agent.models.exec import ExecResult
from codespace_agent.models.files import (
    BatchItemResult,
    FileContent,
    FileEntry,
    FileStats,
    SearchHit,
)
from codespace_agent.models.terminal import (
    ClientFrame,
    ControlMessage,
    ExitStatus,
    IgnoredMessage,
    PingMessage,
    ResizeMessage,
    SessionState,
    TerminalSize,
)

__all__ = [
    "BatchItemResult",
    "ClientFrame",
    "ControlMessage",
    "ExecResult",
    "ExitStatus",
    "FileContent",
    "FileEntry",
    "FileStats",
    "IgnoredMessage",
    "PingMessage",
    "ResizeMessage",
    "SearchHit",
    "SessionState",
    "TerminalSize",
]
