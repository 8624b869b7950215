import asyncio
from pathlib import Path
import signal
import sys

import pytest

from codespace_agent.models.terminal import TerminalSize

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="PTYs require a POSIX host")


async def read_all(process) -> bytes:
    chunks = []
    while True:
        chunk = await asyncio.wait_for(process.read(), 5)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


@pytest.mark.asyncio
async def test_shell_output_and_exit_code(tmp_path: Path) -> None:
    from codespace_agent.providers.process.pty import PtySpawner

    process = await PtySpawner(shell="/bin/sh").spawn(tmp_path, TerminalSize(100, 40))
    try:
        await process.write(b"printf 'a%sb\\n' x; stty size; exit 7\n")
        output = await read_all(process)
        status = await asyncio.wait_for(process.wait(), 5)
    finally:
        process.close()

    assert b"axb" in output
    assert b"40 100" in output
    assert status.code == 7
    assert status.signal is None


@pytest.mark.asyncio
async def test_terminate_hangs_up_interactive_shell(tmp_path: Path) -> None:
    from codespace_agent.providers.process.pty import PtySpawner

    process = await PtySpawner(shell="/bin/sh").spawn(tmp_path, TerminalSize())
    try:
        await asyncio.sleep(0.1)
        process.terminate()
        status = await asyncio.wait_for(process.wait(), 5)
    finally:
        process.close()

    assert status.signal == signal.SIGHUP
    assert process.returncode == -signal.SIGHUP


@pytest.mark.asyncio
async def test_missing_shell_is_a_spawn_failure(tmp_path: Path) -> None:
    from codespace_agent.errors import SpawnFailure
    from codespace_agent.providers.process.pty import PtySpawner

    with pytest.raises(SpawnFailure):
        await PtySpawner(shell=str(tmp_path / "no-such-shell")).spawn(tmp_path, TerminalSize())
