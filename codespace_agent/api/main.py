"""FastAPI application factory for the codespace agent."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import platform
import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from codespace_agent.api import files, shell, terminal
from codespace_agent.config import AgentSettings, get_settings
from codespace_agent.errors import AgentError, InternalError
from codespace_agent.providers.process.pty import PtySpawner
from codespace_agent.providers.workspace.local import LocalWorkspace
from codespace_agent.runner import CommandRunner
from codespace_agent.sandbox.auth import AuthGate
from codespace_agent.sandbox.paths import PathSandbox
from codespace_agent.terminal.manager import TerminalSessionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Working directory: %s", app.state.sandbox.root)
    yield
    logger.info("Shutting down; closing terminal sessions")
    await app.state.sessions.shutdown()


def create_app(settings: AgentSettings | None = None) -> FastAPI:
    settings = settings or get_settings()
    sandbox = PathSandbox(settings.working_root)

    app = FastAPI(title="codespace-agent", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.sandbox = sandbox
    app.state.auth_gate = AuthGate(settings.agent_token)
    app.state.workspace = LocalWorkspace(
        sandbox,
        max_file_size=settings.max_file_size,
        allowed_extensions=settings.extension_allow_list,
    )
    app.state.runner = CommandRunner(
        sandbox,
        timeout_s=settings.command_timeout,
        stream_timeout_s=settings.stream_timeout,
    )
    app.state.sessions = TerminalSessionManager(
        PtySpawner(shell=settings.terminal_shell),
        cwd=sandbox.root,
        grace_period_s=settings.shutdown_grace_period,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(AgentError)
    async def agent_error_handler(request: Request, exc: AgentError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code, headers=headers)

    @app.exception_handler(OSError)
    async def os_error_handler(request: Request, exc: OSError) -> JSONResponse:
        logger.exception("%s %s failed", request.method, request.url.path)
        error = InternalError(str(exc), details={"errno": exc.errno})
        return JSONResponse({"error": error.to_dict()}, status_code=error.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Starlette re-raises after this handler so the server still logs the traceback.
        error = InternalError("Internal server error", details={"type": type(exc).__name__})
        return JSONResponse({"error": error.to_dict()}, status_code=error.status_code)

    @app.get("/health")
    def health_check() -> dict:
        return {
            "status": "ok",
            "uptime": round(time.monotonic() - app.state.started_at, 3),
            "workdir": str(sandbox.root),
            "platform": sys.platform,
            "pythonVersion": platform.python_version(),
            "sessions": len(app.state.sessions),
        }

    app.include_router(files.router)
    app.include_router(shell.router)
    app.include_router(terminal.router)
    return app
