"""Command line entry for DocVault."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

import uvicorn

from docvault.core.config import get_settings
from docvault.core.container import build_container
from docvault.core.logging import configure_logging

logger = logging.getLogger(__name__)


def run_server(host: str = "0.0.0.0", port: int = 8080) -> None:
    from docvault.api.main import create_app

    uvicorn.run(create_app(), host=host, port=port)


async def provision_table() -> None:
    """Create the documents table if it is missing, regardless of environment."""

    settings = get_settings()
    container = build_container(settings, auto_create=True)
    try:
        await container.provisioner.ensure()
    finally:
        await container.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="docvault", description="DocVault document store")
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)

    commands.add_parser("provision", help="Create the documents table if it does not exist")

    args = parser.parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)

    if args.command == "provision":
        asyncio.run(provision_table())
        logger.info("Documents table is ready")
        return

    run_server(getattr(args, "host", "0.0.0.0"), getattr(args, "port", 8080))


if __name__ == "__main__":
    main()
