"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from codespace_agent.errors import Unauthorized
from codespace_agent.providers.workspace.local import LocalWorkspace
from codespace_agent.runner import CommandRunner
from codespace_agent.sandbox.auth import AuthGate


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def require_auth(request: Request) -> None:
    if not get_auth_gate(request).authorize_header(request.headers.get("authorization")):
        raise Unauthorized("Unauthorized")


def get_workspace(request: Request) -> LocalWorkspace:
    return request.app.state.workspace


def get_runner(request: Request) -> CommandRunner:
    return request.app.state.runner


Workspace = Annotated[LocalWorkspace, Depends(get_workspace)]
Runner = Annotated[CommandRunner, Depends(get_runner)]
