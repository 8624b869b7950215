"""Provider package for workspace filesystem and interactive process integrations."""

from codespace_agent.providers.process import InteractiveProcess, ProcessSpawner, PtySpawner
from codespace_agent.providers.workspace import LocalWorkspace, WorkspaceProvider

__all__ = [
    "InteractiveProcess",
    "LocalWorkspace",
    "ProcessSpawner",
    "PtySpawner",
    "WorkspaceProvider",
]
