"""Interactive process implementations and interfaces."""

from codespace_agent.providers.process.base import InteractiveProcess, ProcessSpawner
from codespace_agent.providers.process.pty import PtyProcess, PtySpawner

__all__ = ["InteractiveProcess", "ProcessSpawner", "PtyProcess", "PtySpawner"]
