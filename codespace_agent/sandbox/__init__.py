"""Security boundary: path confinement and bearer authentication."""

from codespace_agent.sandbox.auth import AuthGate
from codespace_agent.sandbox.paths import PathSandbox

__all__ = ["AuthGate", "PathSandbox"]
