import asyncio
from pathlib import Path
import signal

import pytest

from codespace_agent.terminal.manager import TerminalSessionManager
from fakes import FakeConnection, FakeSpawner, eventually


@pytest.mark.asyncio
async def test_sessions_are_registered_until_closed(tmp_path: Path) -> None:
    spawner = FakeSpawner()
    manager = TerminalSessionManager(spawner, tmp_path)
    connection = FakeConnection()

    task = asyncio.create_task(manager.serve(connection))
    await eventually(lambda: len(manager) == 1)

    [session_id] = manager.session_ids()
    assert manager.get(session_id).pid == spawner.processes[0].pid
    assert connection.sent[0]["cwd"] == str(tmp_path)

    spawner.processes[0].exit(0)
    session = await asyncio.wait_for(task, 2)

    assert session.id == session_id
    assert len(manager) == 0
    assert manager.get(session_id) is None


@pytest.mark.asyncio
async def test_session_ids_are_unique(tmp_path: Path) -> None:
    spawner = FakeSpawner()
    manager = TerminalSessionManager(spawner, tmp_path)
    connections = [FakeConnection() for _ in range(5)]

    tasks = [asyncio.create_task(manager.serve(conn)) for conn in connections]
    await eventually(lambda: len(manager) == 5)

    assert len(set(manager.session_ids())) == 5

    await manager.shutdown(grace_period_s=1)
    await asyncio.wait_for(asyncio.gather(*tasks), 2)


@pytest.mark.asyncio
async def test_spawn_failure_reports_error_and_closes(tmp_path: Path) -> None:
    manager = TerminalSessionManager(FakeSpawner(fail=True), tmp_path)
    connection = FakeConnection()

    assert await manager.serve(connection) is None

    assert connection.messages("error")[0]["message"].startswith("Failed to start shell")
    assert connection.closed_with == 1011
    assert len(manager) == 0


@pytest.mark.asyncio
async def test_shutdown_closes_every_session(tmp_path: Path) -> None:
    spawner = FakeSpawner()
    manager = TerminalSessionManager(spawner, tmp_path)
    connections = [FakeConnection() for _ in range(3)]
    tasks = [asyncio.create_task(manager.serve(conn)) for conn in connections]
    await eventually(lambda: len(manager) == 3)

    await asyncio.wait_for(manager.shutdown(grace_period_s=1), 3)
    await asyncio.wait_for(asyncio.gather(*tasks), 2)

    assert len(manager) == 0
    for process in spawner.processes:
        assert process.signals[0] == signal.SIGHUP
    for connection in connections:
        assert connection.closed_with == 1000
        assert connection.messages("exit")


@pytest.mark.asyncio
async def test_shutdown_force_closes_stragglers(tmp_path: Path) -> None:
    spawner = FakeSpawner(exit_on_terminate=False)
    manager = TerminalSessionManager(spawner, tmp_path)
    connection = FakeConnection()
    task = asyncio.create_task(manager.serve(connection))
    await eventually(lambda: len(manager) == 1)

    await asyncio.wait_for(manager.shutdown(grace_period_s=0.1), 5)
    await asyncio.wait_for(task, 2)

    assert spawner.processes[0].signals == [signal.SIGHUP, signal.SIGKILL]
    assert connection.closed_with == 1001
    assert len(manager) == 0


@pytest.mark.asyncio
async def test_no_new_sessions_after_shutdown(tmp_path: Path) -> None:
    spawner = FakeSpawner()
    manager = TerminalSessionManager(spawner, tmp_path)
    await manager.shutdown()

    connection = FakeConnection()
    assert await manager.serve(connection) is None
    assert connection.closed_with == 1013
    assert spawner.processes == []


class SlowSpawner(FakeSpawner):
    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def spawn(self, cwd: Path, size):
        self.started.set()
        await self.release.wait()
        return await super().spawn(cwd, size)


@pytest.mark.asyncio
async def test_shell_spawned_during_shutdown_is_discarded(tmp_path: Path) -> None:
    spawner = SlowSpawner()
    manager = TerminalSessionManager(spawner, tmp_path)
    connection = FakeConnection()
    task = asyncio.create_task(manager.serve(connection))
    await asyncio.wait_for(spawner.started.wait(), 1)

    await manager.shutdown(grace_period_s=0.1)
    spawner.release.set()

    assert await asyncio.wait_for(task, 2) is None
    assert connection.closed_with == 1013
    assert spawner.processes[0].signals == [signal.SIGKILL]
    assert spawner.processes[0].closed
    assert len(manager) == 0
