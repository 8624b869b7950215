"""Error taxonomy shared by the sandbox, workspace and HTTP layers."""

from __future__ import annotations

from typing import Any


class AgentError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class Unauthorized(AgentError):
    kind = "unauthorized"
    status_code = 401


class InvalidPath(AgentError):
    kind = "invalid_path"
    status_code = 400


class NotFound(AgentError):
    kind = "not_found"
    status_code = 404


class Conflict(AgentError):
    """Wrong entry type for the operation, e.g. a directory where a file is expected."""

    kind = "conflict"
    status_code = 400


class PayloadTooLarge(AgentError):
    kind = "payload_too_large"
    status_code = 413


class Forbidden(AgentError):
    kind = "forbidden"
    status_code = 403


class SpawnFailure(AgentError):
    kind = "spawn_failure"
    status_code = 500


class CommandTimeout(AgentError):
    kind = "timeout"
    status_code = 504


class InternalError(AgentError):
    kind = "internal"
    status_code = 500


class BadRequest(AgentError):
    kind = "bad_request"
    status_code = 400
