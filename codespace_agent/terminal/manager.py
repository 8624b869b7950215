"""Registry and lifecycle coordination for live terminal sessions."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional
from uuid import uuid4

from codespace_agent.errors import SpawnFailure
from codespace_agent.models.terminal import TerminalSize
from codespace_agent.providers.process.base import InteractiveProcess, ProcessSpawner
from codespace_agent.terminal import protocol
from codespace_agent.terminal.connection import (
    INTERNAL_ERROR,
    TRY_AGAIN_LATER,
    TerminalConnection,
)
from codespace_agent.terminal.session import KILL_TIMEOUT_S, TerminalSession

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD_S = 10.0
FORCE_CLOSE_TIMEOUT_S = 2.0


class TerminalSessionManager:
    """Creates sessions and is the only owner of the live-session registry.

    Every insert, removal and snapshot of the registry happens under a single
    lock; a session's process and connection are touched only through the
    session itself.
    """

    def __init__(
        self,
        spawner: ProcessSpawner,
        cwd: Path,
        grace_period_s: float = DEFAULT_GRACE_PERIOD_S,
        kill_timeout_s: float = KILL_TIMEOUT_S,
        initial_size: TerminalSize = TerminalSize(),
    ) -> None:
        self._spawner = spawner
        self._cwd = cwd
        self._grace_period_s = grace_period_s
        self._kill_timeout_s = kill_timeout_s
        self._initial_size = initial_size
        self._sessions: dict[str, TerminalSession] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[TerminalSession]:
        return self._sessions.get(session_id)

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    async def serve(self, connection: TerminalConnection) -> Optional[TerminalSession]:
        """Run one session over ``connection`` until it is closed.

        Returns the finished session, or ``None`` if no session could be
        created (shell failed to start, or the manager is shutting down).
        """
        if self._shutting_down:
            await connection.close(TRY_AGAIN_LATER)
            return None
        try:
            process = await self._spawner.spawn(self._cwd, self._initial_size)
        except SpawnFailure as exc:
            logger.error("Could not start terminal shell: %s", exc.message)
            try:
                await connection.send_json(protocol.error_message(exc.message))
            finally:
                await connection.close(INTERNAL_ERROR)
            return None

        session = await self._register(process, connection)
        if session is None:
            logger.info("Shutdown began while a terminal was starting; discarding it")
            process.kill()
            process.close()
            await connection.close(TRY_AGAIN_LATER)
            return None
        logger.info("Terminal session started: %s (pid %s)", session.id, session.pid)
        try:
            await session.run()
        except Exception:
            logger.exception("Terminal session %s failed", session.id)
            await session.force_close()
        finally:
            await self._unregister(session)
            logger.info("Terminal session closed: %s", session.id)
        return session

    async def _register(
        self, process: InteractiveProcess, connection: TerminalConnection
    ) -> Optional[TerminalSession]:
        async with self._lock:
            if self._shutting_down:
                return None
            session_id = uuid4().hex[:12]
            while session_id in self._sessions:
                session_id = uuid4().hex[:12]
            session = TerminalSession(
                session_id,
                process,
                connection,
                cwd=str(self._cwd),
                size=self._initial_size,
                kill_timeout_s=self._kill_timeout_s,
            )
            self._sessions[session_id] = session
            task = asyncio.current_task()
            if task is not None:
                self._tasks[session_id] = task
        return session

    async def _unregister(self, session: TerminalSession) -> None:
        async with self._lock:
            self._sessions.pop(session.id, None)
            self._tasks.pop(session.id, None)

    async def shutdown(self, grace_period_s: float | None = None) -> None:
        """Terminate every live session, force-closing stragglers after the grace period."""
        grace = self._grace_period_s if grace_period_s is None else grace_period_s
        self._shutting_down = True
        async with self._lock:
            sessions = list(self._sessions.values())
            tasks = dict(self._tasks)
        if not sessions:
            return

        logger.info("Closing %d terminal session(s)", len(sessions))
        for session in sessions:
            try:
                session.terminate()
            except OSError as exc:
                logger.error("Error closing session %s: %s", session.id, exc)

        waiters = {asyncio.ensure_future(session.wait_closed()): session for session in sessions}
        _, pending = await asyncio.wait(waiters, timeout=grace)
        if not pending:
            logger.info("All terminal sessions closed")
            return

        stragglers = [waiters[waiter] for waiter in pending]
        logger.error("Forcing %d terminal session(s) closed after %ss", len(stragglers), grace)
        for session in stragglers:
            try:
                await session.force_close()
            except OSError as exc:
                logger.error("Error force-closing session %s: %s", session.id, exc)

        _, pending = await asyncio.wait(pending, timeout=FORCE_CLOSE_TIMEOUT_S)
        for waiter in pending:
            session = waiters[waiter]
            task = tasks.get(session.id)
            if task is not None and not task.done():
                logger.error("Abandoning terminal session %s (pid %s)", session.id, session.pid)
                task.cancel()
            waiter.cancel()
