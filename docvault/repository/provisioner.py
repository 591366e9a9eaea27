"""Ensures the documents table exists before the repository touches it."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from docvault.core.exceptions import ConfigurationError
from docvault.repository.table import DynamoTableClient

logger = logging.getLogger(__name__)


class TableProvisioner:
    """Verify (and in non-production, create) the backing table once per process.

    Concurrent first callers share a single in-flight attempt. A failed attempt
    is forgotten so the next caller starts over instead of replaying the error.
    """

    def __init__(self, table: DynamoTableClient, *, auto_create: bool, ready_timeout_seconds: int = 60) -> None:
        self._table = table
        self._auto_create = auto_create
        self._ready_timeout_seconds = ready_timeout_seconds
        self._ready = False
        self._pending: Optional[asyncio.Task[None]] = None

    @property
    def ready(self) -> bool:
        return self._ready

    async def ensure(self) -> None:
        if self._ready:
            return

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._provision())
            self._pending.add_done_callback(self._settle)

        # Shield so one cancelled caller does not abort the attempt for everyone else
        await asyncio.shield(self._pending)

    def _settle(self, task: asyncio.Task[None]) -> None:
        if task is not self._pending:
            return
        if task.cancelled() or task.exception() is not None:
            self._pending = None
            return
        self._ready = True

    async def _provision(self) -> None:
        table_name = self._table.table_name
        if await self._table.exists():
            logger.info("Documents table %s is available", table_name)
            return

        if not self._auto_create:
            raise ConfigurationError(
                f'DynamoDB table "{table_name}" does not exist. Create it manually or set '
                "AWS_AUTO_CREATE_TABLE=true to auto-provision in non-production environments."
            )

        logger.info("Creating documents table %s", table_name)
        await self._table.create()
        await self._table.wait_until_ready(self._ready_timeout_seconds)
        logger.info("Documents table %s created and active", table_name)
