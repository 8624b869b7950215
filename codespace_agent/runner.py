"""One-shot shell command execution inside the working root."""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
from pathlib import Path
import signal
import time
from typing import Callable, Optional

from codespace_agent.errors import CommandTimeout, NotFound, SpawnFailure
from codespace_agent.models.exec import ExecResult
from codespace_agent.sandbox.paths import PathSandbox

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_STREAM_TIMEOUT_S = 600.0
READ_CHUNK_SIZE = 4096

OutputCallback = Callable[[str, str], None]


class CommandRunner:
    def __init__(
        self,
        sandbox: PathSandbox,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        stream_timeout_s: float = DEFAULT_STREAM_TIMEOUT_S,
        env: dict[str, str] | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._timeout_s = timeout_s
        self._stream_timeout_s = stream_timeout_s
        self._env = env

    def resolve_cwd(self, cwd: str | None) -> Path:
        if not cwd:
            return self._sandbox.root
        workdir = self._sandbox.resolve(cwd)
        if not workdir.is_dir():
            raise NotFound("Working directory not found", details={"cwd": cwd})
        return workdir

    async def run_buffered(
        self, command: str, cwd: str | None = None, timeout_s: float | None = None
    ) -> ExecResult:
        """Run ``command`` to completion and return its trimmed output."""
        return await self._run(command, cwd, timeout_s or self._timeout_s, None)

    async def run_streaming(
        self,
        command: str,
        cwd: str | None = None,
        timeout_s: float | None = None,
        on_output: OutputCallback | None = None,
    ) -> ExecResult:
        """Run ``command``, handing each output chunk to ``on_output`` as it arrives.

        The aggregated result has the same shape as :meth:`run_buffered`.
        """
        return await self._run(command, cwd, timeout_s or self._stream_timeout_s, on_output)

    async def _run(
        self,
        command: str,
        cwd: str | None,
        timeout_s: float,
        on_output: OutputCallback | None,
    ) -> ExecResult:
        workdir = self.resolve_cwd(cwd)
        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=str(workdir),
                env=self._merge_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            logger.warning("Failed to spawn command %r: %s", command, exc)
            return ExecResult.failure(
                command, SpawnFailure(f"Failed to start command: {exc}"), stderr=str(exc)
            )

        stdout: list[str] = []
        stderr: list[str] = []
        readers = asyncio.gather(
            _pump(process.stdout, "stdout", stdout, on_output),
            _pump(process.stderr, "stderr", stderr, on_output),
            process.wait(),
        )
        try:
            await asyncio.wait_for(readers, timeout=timeout_s)
        except asyncio.TimeoutError:
            await _kill(process)
            duration_ms = _elapsed_ms(start)
            logger.warning("Command timed out after %ss (pid %s): %r", timeout_s, process.pid, command)
            return ExecResult.failure(
                command,
                CommandTimeout(f"Command timed out after {timeout_s:g}s"),
                stdout="".join(stdout).strip(),
                stderr="".join(stderr).strip(),
                exit_code=process.returncode,
                duration_ms=duration_ms,
            )
        except asyncio.CancelledError:
            await _kill(process)
            raise

        exit_code = process.returncode
        logger.debug("Command exited with %s: %r", exit_code, command)
        return ExecResult(
            command=command,
            success=exit_code == 0,
            stdout="".join(stdout).strip(),
            stderr="".join(stderr).strip(),
            exit_code=exit_code,
            duration_ms=_elapsed_ms(start),
        )

    def _merge_env(self) -> dict[str, str]:
        merged = os.environ.copy()
        if self._env:
            merged.update(self._env)
        return merged


async def _pump(
    stream: Optional[asyncio.StreamReader],
    name: str,
    sink: list[str],
    on_output: OutputCallback | None,
) -> None:
    if stream is None:
        return
    # A multi-byte character may straddle two reads.
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        text = decoder.decode(chunk, final=not chunk)
        if text:
            sink.append(text)
            if on_output is not None:
                on_output(name, text)
        if not chunk:
            return


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the command's whole process group and reap it."""
    # The shell may already be gone while background children still hold the pipes.
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        if process.returncode is None:
            process.kill()
    await process.wait()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
