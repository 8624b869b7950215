"""In-memory stand-ins for PTY processes and client connections."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Any, Callable, Optional, Union

from codespace_agent.errors import SpawnFailure
from codespace_agent.models.terminal import ExitStatus, TerminalSize
from codespace_agent.terminal.connection import ConnectionClosed

Payload = Union[str, bytes]


class FakeProcess:
    def __init__(self, pid: int = 4242, exit_on_terminate: bool = True) -> None:
        self.pid = pid
        self.returncode: Optional[int] = None
        self.written: list[bytes] = []
        self.sizes: list[TerminalSize] = []
        self.signals: list[int] = []
        self.closed = False
        self._exit_on_terminate = exit_on_terminate
        self._output: asyncio.Queue[bytes] = asyncio.Queue()
        self._exited = asyncio.Event()

    def emit(self, data: bytes) -> None:
        self._output.put_nowait(data)

    def exit(self, returncode: int = 0) -> None:
        if self.returncode is not None:
            return
        self.returncode = returncode
        self._output.put_nowait(b"")
        self._exited.set()

    async def read(self) -> bytes:
        return await self._output.get()

    async def write(self, data: bytes) -> None:
        self.written.append(data)

    def resize(self, size: TerminalSize) -> None:
        self.sizes.append(size)

    def terminate(self) -> None:
        self.signals.append(signal.SIGHUP)
        if self._exit_on_terminate:
            self.exit(-signal.SIGHUP)

    def kill(self) -> None:
        self.signals.append(signal.SIGKILL)
        self.exit(-signal.SIGKILL)

    async def wait(self) -> ExitStatus:
        await self._exited.wait()
        return ExitStatus.from_returncode(self.returncode)

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self) -> None:
        self.sent: list[Any] = []
        self.closed_with: Optional[int] = None
        self._inbound: asyncio.Queue[Optional[Payload]] = asyncio.Queue()

    @property
    def is_open(self) -> bool:
        return self.closed_with is None

    def feed(self, payload: Payload) -> None:
        self._inbound.put_nowait(payload)

    def disconnect(self) -> None:
        self._inbound.put_nowait(None)

    async def receive(self) -> Optional[Payload]:
        if not self.is_open:
            return None
        return await self._inbound.get()

    async def send_bytes(self, data: bytes) -> None:
        self._check_open()
        self.sent.append(data)

    async def send_json(self, data: dict[str, Any]) -> None:
        self._check_open()
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        if self.closed_with is None:
            self.closed_with = code
            self._inbound.put_nowait(None)

    def messages(self, kind: str) -> list[dict[str, Any]]:
        return [item for item in self.sent if isinstance(item, dict) and item.get("type") == kind]

    def output(self) -> bytes:
        return b"".join(item for item in self.sent if isinstance(item, bytes))

    def _check_open(self) -> None:
        if not self.is_open:
            raise ConnectionClosed("closed")


class FakeSpawner:
    def __init__(self, fail: bool = False, **process_kwargs: Any) -> None:
        self.fail = fail
        self.processes: list[FakeProcess] = []
        self._process_kwargs = process_kwargs

    async def spawn(self, cwd: Path, size: TerminalSize) -> FakeProcess:
        if self.fail:
            raise SpawnFailure("Failed to start shell: no such file")
        process = FakeProcess(pid=1000 + len(self.processes), **self._process_kwargs)
        self.processes.append(process)
        return process


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
