"""Document repository: CRUD and filtered listing over the documents table."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from docvault.core.exceptions import DocumentNotFoundError
from docvault.models.document import (
    DocumentFilters,
    DocumentPage,
    DocumentRecord,
    DocumentType,
    TagCount,
    TypeCount,
)
from docvault.repository.provisioner import TableProvisioner
from docvault.repository.query import run_query
from docvault.repository.table import DynamoTableClient
from docvault.utils.dates import next_timestamp
from docvault.utils.monitoring import instrumented, malformed_rows_total

logger = logging.getLogger(__name__)

# Fields an update may never touch; updatedAt is always stamped by the repository
IMMUTABLE_FIELDS = frozenset({"id", "createdAt", "updatedAt"})


def to_record(item: Mapping[str, Any]) -> Optional[DocumentRecord]:
    """Validate a stored row. Rows that are not complete documents are logged and treated as absent."""

    try:
        return DocumentRecord.model_validate(item)
    except PydanticValidationError as exc:
        logger.warning("Skipping malformed document row %s: %s", item.get("id"), exc.errors()[0]["msg"])
        malformed_rows_total.inc()
        return None


class DocumentRepository:
    """Query/update engine over the documents table.

    Listing materializes the whole collection with a paged scan and then runs
    the in-memory pipeline from `docvault.repository.query`.
    """

    def __init__(self, table: DynamoTableClient, provisioner: TableProvisioner) -> None:
        self._table = table
        self._provisioner = provisioner

    @instrumented("create")
    async def create(self, record: DocumentRecord) -> DocumentRecord:
        await self._provisioner.ensure()
        await self._table.put(record.to_item())
        logger.info("Stored document %s", record.id)
        return record

    @instrumented("get")
    async def get_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        await self._provisioner.ensure()
        item = await self._table.get(document_id)
        return to_record(item) if item else None

    @instrumented("update")
    async def update(self, document_id: str, fields: Mapping[str, Any]) -> DocumentRecord:
        """Merge `fields` into the stored record and stamp `updatedAt`."""

        await self._provisioner.ensure()
        changes: Dict[str, Any] = {key: value for key, value in fields.items() if key not in IMMUTABLE_FIELDS}

        item = await self._table.get(document_id)
        current = to_record(item) if item else None
        if current is None:
            raise DocumentNotFoundError(document_id)
        if not changes:
            return current

        changes["updatedAt"] = next_timestamp(current.updatedAt)
        attributes = await self._table.update(document_id, changes)
        return DocumentRecord.model_validate(attributes)

    @instrumented("delete")
    async def delete(self, document_id: str) -> None:
        await self._provisioner.ensure()
        await self._table.delete(document_id)
        logger.info("Deleted document %s", document_id)

    async def iter_records(self) -> AsyncIterator[DocumentRecord]:
        await self._provisioner.ensure()
        async for item in self._table.scan_all():
            record = to_record(item)
            if record is not None:
                yield record

    @instrumented("fetch_all")
    async def fetch_all(self) -> List[DocumentRecord]:
        return [record async for record in self.iter_records()]

    @instrumented("list")
    async def list(self, filters: Optional[DocumentFilters] = None) -> DocumentPage:
        records = await self.fetch_all()
        return run_query(records, filters or DocumentFilters())

    async def count_by_type(self) -> List[TypeCount]:
        """Document count for every category, including empty ones."""

        counts = Counter(record.type for record in await self.fetch_all())
        return [TypeCount(type=document_type, count=counts.get(document_type, 0)) for document_type in DocumentType]

    async def tag_counts(self) -> List[TagCount]:
        """Tag occurrence counts, most used first."""

        counts: Counter[str] = Counter()
        for record in await self.fetch_all():
            counts.update(record.tags)
        ordered = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))
        return [TagCount(tag=tag, count=count) for tag, count in ordered]
