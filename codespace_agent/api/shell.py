"""One-shot command execution route."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from codespace_agent.api.deps import Runner, require_auth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(require_auth)], tags=["shell"])


class ShellReq(BaseModel):
    command: str = Field(min_length=1)
    cwd: Optional[str] = None
    stream: bool = False
    timeout: Optional[float] = Field(default=None, gt=0, description="Seconds before the command is killed.")


@router.post("/shell")
async def run_shell(body: ShellReq, runner: Runner) -> Dict[str, Any]:
    if body.stream:

        def log_chunk(stream: str, text: str) -> None:
            logger.debug("[%s] %s", stream, text.rstrip())

        result = await runner.run_streaming(
            body.command, cwd=body.cwd, timeout_s=body.timeout, on_output=log_chunk
        )
    else:
        result = await runner.run_buffered(body.command, cwd=body.cwd, timeout_s=body.timeout)
    return result.to_dict()
