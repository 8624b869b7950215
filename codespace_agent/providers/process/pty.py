"""Pseudo-terminal backed shell processes (POSIX)."""

from __future__ import annotations

import asyncio
import fcntl
import logging
import os
from pathlib import Path
import shutil
import signal
import struct
import subprocess
import sys
import termios
from typing import Mapping, Optional, Sequence

from codespace_agent.errors import SpawnFailure
from codespace_agent.models.terminal import ExitStatus, TerminalSize
from codespace_agent.providers.process.base import InteractiveProcess, ProcessSpawner

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536
WRITE_RETRY_DELAY = 0.01


def default_shell() -> str:
    shell = os.environ.get("SHELL")
    if shell and os.path.exists(shell):
        return shell
    return shutil.which("bash") or "/bin/sh"


def _set_terminal_size(fd: int, size: TerminalSize) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", size.rows, size.cols, 0, 0))


def _acquire_controlling_terminal() -> None:
    # Runs in the child after setsid(); stdin is already the PTY slave.
    try:
        fcntl.ioctl(0, termios.TIOCSCTTY, 0)
    except OSError:
        pass


class PtyProcess(InteractiveProcess):
    def __init__(self, process: asyncio.subprocess.Process, master_fd: int) -> None:
        self._process = process
        self._master_fd = master_fd
        self._loop = asyncio.get_running_loop()
        self._output: asyncio.Queue[Optional[bytes]] = asyncio.Queue()
        self._eof = False
        self._closed = False
        os.set_blocking(master_fd, False)
        self._loop.add_reader(master_fd, self._on_readable)

    @classmethod
    async def spawn(
        cls,
        argv: Sequence[str],
        cwd: Path,
        size: TerminalSize,
        env: Mapping[str, str] | None = None,
    ) -> "PtyProcess":
        if sys.platform == "win32":
            raise SpawnFailure("Interactive terminals require a POSIX host")
        master_fd, slave_fd = os.openpty()
        try:
            _set_terminal_size(slave_fd, size)
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
                start_new_session=True,
                preexec_fn=_acquire_controlling_terminal,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            os.close(master_fd)
            raise SpawnFailure(
                f"Terminal failed to start: {exc}", details={"argv": list(argv)}
            ) from exc
        finally:
            os.close(slave_fd)
        return cls(process, master_fd)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    def _on_readable(self) -> None:
        try:
            data = os.read(self._master_fd, READ_CHUNK_SIZE)
        except BlockingIOError:
            return
        except OSError:
            # Linux reports EIO on the master once every slave handle is closed.
            data = b""
        if data:
            self._output.put_nowait(data)
            return
        self._loop.remove_reader(self._master_fd)
        self._output.put_nowait(None)

    async def read(self) -> bytes:
        if self._eof:
            return b""
        chunk = await self._output.get()
        if chunk is None:
            self._eof = True
            return b""
        return chunk

    async def write(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            try:
                written = os.write(self._master_fd, view)
            except BlockingIOError:
                await asyncio.sleep(WRITE_RETRY_DELAY)
                continue
            view = view[written:]

    def resize(self, size: TerminalSize) -> None:
        _set_terminal_size(self._master_fd, size)

    def terminate(self) -> None:
        # SIGHUP, not SIGTERM: interactive shells ignore SIGTERM.
        self._signal_group(signal.SIGHUP)

    def kill(self) -> None:
        self._signal_group(signal.SIGKILL)

    def _signal_group(self, sig: signal.Signals) -> None:
        if self._process.returncode is not None:
            return
        try:
            os.killpg(self._process.pid, sig)
        except ProcessLookupError:
            pass
        except PermissionError:
            logger.warning("Cannot signal process group %s; signalling pid", self._process.pid)
            self._process.send_signal(sig)

    async def wait(self) -> ExitStatus:
        return ExitStatus.from_returncode(await self._process.wait())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._eof:
            self._loop.remove_reader(self._master_fd)
            self._output.put_nowait(None)
        try:
            os.close(self._master_fd)
        except OSError:
            pass


class PtySpawner(ProcessSpawner):
    """Starts the configured shell on a fresh PTY for each terminal session."""

    def __init__(self, shell: str | None = None, env: Mapping[str, str] | None = None) -> None:
        self._shell = shell or default_shell()
        self._env = env

    @property
    def shell(self) -> str:
        return self._shell

    async def spawn(self, cwd: Path, size: TerminalSize) -> InteractiveProcess:
        env = dict(os.environ if self._env is None else self._env)
        env["TERM"] = "xterm-256color"
        return await PtyProcess.spawn([self._shell], cwd=cwd, size=size, env=env)
