"""Workspace provider implementations and interfaces."""

from codespace_agent.providers.workspace.base import WorkspaceProvider
from codespace_agent.providers.workspace.local import LocalWorkspace

__all__ = ["LocalWorkspace", "WorkspaceProvider"]
