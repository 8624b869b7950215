from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from codespace_agent.api.main import create_app
from codespace_agent.config import AgentSettings
from codespace_agent.sandbox.paths import PathSandbox

TOKEN = "s3cret-token"


@pytest.fixture
def root(tmp_path: Path) -> Path:
    workdir = tmp_path / "workspace"
    workdir.mkdir()
    return workdir.resolve()


@pytest.fixture
def sandbox(root: Path) -> PathSandbox:
    return PathSandbox(root)


def make_settings(root: Path, **overrides) -> AgentSettings:
    values = {"agent_token": TOKEN, "workdir": root, "terminal_shell": "/bin/sh"}
    values.update(overrides)
    return AgentSettings(_env_file=None, **values)


@pytest.fixture
def client(root: Path) -> TestClient:
    return TestClient(create_app(make_settings(root)))


@pytest.fixture
def auth() -> dict:
    return {"Authorization": f"Bearer {TOKEN}"}
