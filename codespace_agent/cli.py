"""Command-line entry point: ``codespace-agent``."""

from __future__ import annotations

import logging
import math
from pathlib import Path
import sys

import click
import uvicorn

from codespace_agent.api.main import create_app
from codespace_agent.config import AgentSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.command()
@click.option("--host", default=None, help="Bind address (env HOST).")
@click.option("--port", type=int, default=None, help="Listening port (env PORT).")
@click.option(
    "--workdir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Working root exposed to clients (env WORKDIR).",
)
@click.option("--log-level", default=None, help="Log level (env LOG_LEVEL).")
def main(host: str | None, port: int | None, workdir: Path | None, log_level: str | None) -> None:
    overrides = {
        key: value
        for key, value in {
            "host": host,
            "port": port,
            "workdir": workdir,
            "log_level": log_level,
        }.items()
        if value is not None
    }
    settings = AgentSettings(**overrides)
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logger = logging.getLogger("codespace_agent")

    try:
        app = create_app(settings)
    except ValueError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    logger.info(
        "Codespace agent listening on %s:%s (workdir %s, platform %s)",
        settings.host,
        settings.port,
        settings.working_root,
        sys.platform,
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=math.ceil(settings.shutdown_grace_period),
    )


if __name__ == "__main__":
    main()
