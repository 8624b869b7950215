"""Interactive process interface."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from codespace_agent.models.terminal import ExitStatus, TerminalSize


class InteractiveProcess(Protocol):
    @property
    def pid(self) -> int:
        ...

    @property
    def returncode(self) -> Optional[int]:
        ...

    async def read(self) -> bytes:
        """Return the next chunk of output, or ``b""`` once output has ended."""
        ...

    async def write(self, data: bytes) -> None:
        ...

    def resize(self, size: TerminalSize) -> None:
        ...

    def terminate(self) -> None:
        ...

    def kill(self) -> None:
        ...

    async def wait(self) -> ExitStatus:
        ...

    def close(self) -> None:
        ...


class ProcessSpawner(Protocol):
    async def spawn(self, cwd: Path, size: TerminalSize) -> InteractiveProcess:
        ...
