"""Data models for one-shot command execution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from codespace_agent.errors import AgentError


@dataclass(frozen=True)
class ExecResult:
    command: str
    success: bool
    stdout: str
    stderr: str
    exit_code: Optional[int]
    duration_ms: int
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def timed_out(self) -> bool:
        return self.error_kind == "timeout"

    @classmethod
    def failure(
        cls,
        command: str,
        exc: AgentError,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: Optional[int] = None,
        duration_ms: int = 0,
    ) -> "ExecResult":
        return cls(
            command=command,
            success=False,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
            error=exc.message,
            error_kind=exc.kind,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exitCode": self.exit_code,
            "durationMs": self.duration_ms,
        }
        if self.error is not None:
            data["error"] = self.error
            data["errorKind"] = self.error_kind
            data["timedOut"] = self.timed_out
        return data
