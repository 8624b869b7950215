"""A single interactive shell bridged to one client connection."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from codespace_agent.models.terminal import (
    ExitStatus,
    IgnoredMessage,
    PingMessage,
    ResizeMessage,
    SessionState,
    TerminalSize,
)
from codespace_agent.providers.process.base import InteractiveProcess
from codespace_agent.terminal import protocol
from codespace_agent.terminal.connection import (
    GOING_AWAY,
    NORMAL_CLOSURE,
    ConnectionClosed,
    TerminalConnection,
)

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT_S = 1.0
KILL_TIMEOUT_S = 3.0


class TerminalSession:
    """Owns one PTY process and one connection for their shared lifetime.

    State moves ``ACTIVE -> CLOSING -> CLOSED`` exactly once. Whichever side
    ends first (process exit, client disconnect, or a shutdown request) starts
    the teardown of the other; :meth:`run` returns once both are released.
    """

    def __init__(
        self,
        session_id: str,
        process: InteractiveProcess,
        connection: TerminalConnection,
        cwd: str,
        size: TerminalSize = TerminalSize(),
        drain_timeout_s: float = DRAIN_TIMEOUT_S,
        kill_timeout_s: float = KILL_TIMEOUT_S,
    ) -> None:
        self._id = session_id
        self._process = process
        self._connection = connection
        self._cwd = cwd
        self._dimensions = size
        self._drain_timeout_s = drain_timeout_s
        self._kill_timeout_s = kill_timeout_s
        self._state = SessionState.ACTIVE
        self._exit_status: Optional[ExitStatus] = None
        self._closed = asyncio.Event()

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def dimensions(self) -> TerminalSize:
        return self._dimensions

    @property
    def exit_status(self) -> Optional[ExitStatus]:
        return self._exit_status

    @property
    def pid(self) -> int:
        return self._process.pid

    async def run(self) -> None:
        await self._send_json(protocol.connected_message(self._id, self._cwd))
        output_task = asyncio.create_task(self._pump_output(), name=f"terminal-{self._id}-output")
        input_task = asyncio.create_task(self._pump_input(), name=f"terminal-{self._id}-input")
        exit_task = asyncio.create_task(self._process.wait(), name=f"terminal-{self._id}-exit")
        tasks = (output_task, input_task, exit_task)
        try:
            await asyncio.wait({input_task, exit_task}, return_when=asyncio.FIRST_COMPLETED)
            if exit_task.done():
                await self._close_after_exit(exit_task.result(), output_task)
            else:
                if input_task.exception() is not None:
                    logger.error(
                        "Terminal session %s input failed", self._id, exc_info=input_task.exception()
                    )
                await self._close_after_disconnect(exit_task)
        finally:
            if self._process.returncode is None and not exit_task.done():
                self._process.kill()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._release()

    def terminate(self) -> None:
        """Ask the shell to exit; the session closes once it does."""
        if self._state is SessionState.ACTIVE:
            self._state = SessionState.CLOSING
        self._process.terminate()

    async def force_close(self) -> None:
        self._state = SessionState.CLOSING
        self._process.kill()
        await self._connection.close(GOING_AWAY)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def _close_after_exit(self, status: ExitStatus, output_task: asyncio.Task) -> None:
        self._exit_status = status
        # Output written just before exit is still queued on the PTY.
        await asyncio.wait({output_task}, timeout=self._drain_timeout_s)
        self._state = SessionState.CLOSING
        logger.info(
            "Shell exited for session %s (code: %s, signal: %s)", self._id, status.code, status.signal
        )
        if self._connection.is_open:
            await self._send_json(protocol.exit_message(status))
        await self._connection.close(NORMAL_CLOSURE)

    async def _close_after_disconnect(self, exit_task: asyncio.Task) -> None:
        self._state = SessionState.CLOSING
        logger.info("Terminal connection closed for session %s; terminating shell", self._id)
        if self._process.returncode is None:
            self._process.terminate()
        done, _ = await asyncio.wait({exit_task}, timeout=self._kill_timeout_s)
        if not done:
            logger.warning("Shell for session %s ignored SIGHUP; killing", self._id)
            self._process.kill()
            done, _ = await asyncio.wait({exit_task}, timeout=self._kill_timeout_s)
        if done:
            self._exit_status = exit_task.result()
        else:
            logger.error("Shell for session %s (pid %s) did not exit after SIGKILL", self._id, self.pid)
        await self._connection.close(NORMAL_CLOSURE)

    async def _pump_output(self) -> None:
        while True:
            chunk = await self._process.read()
            if not chunk:
                return
            if self._state is not SessionState.ACTIVE:
                continue
            try:
                await self._connection.send_bytes(chunk)
            except ConnectionClosed:
                logger.debug("Dropped %d output bytes for session %s", len(chunk), self._id)

    async def _pump_input(self) -> None:
        while True:
            payload = await self._connection.receive()
            if payload is None:
                return
            await self._handle_frame(payload)

    async def _handle_frame(self, payload: str | bytes) -> None:
        frame = protocol.parse_client_frame(payload)
        if isinstance(frame, bytes):
            if self._state is not SessionState.ACTIVE:
                return
            try:
                await self._process.write(frame)
            except OSError as exc:
                logger.warning("Failed to write input for session %s: %s", self._id, exc)
        elif isinstance(frame, ResizeMessage):
            try:
                self._process.resize(frame.size)
            except OSError as exc:
                logger.warning("Failed to resize session %s: %s", self._id, exc)
                return
            self._dimensions = frame.size
        elif isinstance(frame, PingMessage):
            await self._send_json(protocol.pong_message())
        elif isinstance(frame, IgnoredMessage):
            logger.debug("Ignored control frame on session %s: %s", self._id, frame.reason)

    async def _send_json(self, message: dict) -> None:
        try:
            await self._connection.send_json(message)
        except ConnectionClosed:
            logger.debug("Dropped %s message for session %s", message.get("type"), self._id)

    def _release(self) -> None:
        self._process.close()
        self._state = SessionState.CLOSED
        self._closed.set()
