from __future__ import annotations

import asyncio
import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from docvault.core.exceptions import AclUnsupportedError, DocumentNotFoundError, StorageUnavailableError
from docvault.models.document import DocumentRecord
from docvault.repository.documents import DocumentRepository
from docvault.repository.provisioner import TableProvisioner
from docvault.services.documents import DocumentService
from docvault.storage.objects import S3ObjectStore
from docvault.storage.thumbnails import ThumbnailTrigger
from docvault.storage.uploads import UploadService


class StubTable:
    """In-memory stand-in for DynamoTableClient."""

    def __init__(self, *, exists: bool = True, page_size: int = 10, table_name: str = "documents-test") -> None:
        self.table_name = table_name
        self.page_size = page_size
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.table_exists = exists
        self.describe_calls = 0
        self.create_calls = 0
        self.wait_calls = 0
        self.scan_calls = 0
        self.fail_describe: Optional[Exception] = None
        self.fail_scan_on_page: Optional[int] = None

    async def exists(self) -> bool:
        self.describe_calls += 1
        await asyncio.sleep(0)
        if self.fail_describe is not None:
            error, self.fail_describe = self.fail_describe, None
            raise error
        return self.table_exists

    async def create(self) -> None:
        self.create_calls += 1
        await asyncio.sleep(0)

    async def wait_until_ready(self, timeout_seconds: int) -> None:
        self.wait_calls += 1
        await asyncio.sleep(0)
        self.table_exists = True

    async def put(self, item: Dict[str, Any]) -> None:
        self.rows[item["id"]] = copy.deepcopy(dict(item))

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        row = self.rows.get(key)
        return copy.deepcopy(row) if row is not None else None

    async def update(self, key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        row = self.rows.get(key)
        if row is None:
            raise DocumentNotFoundError(key)
        row.update(copy.deepcopy(dict(fields)))
        return copy.deepcopy(row)

    async def delete(self, key: str) -> None:
        self.rows.pop(key, None)

    async def scan_page(self, start_key: Optional[Dict[str, Any]] = None) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        self.scan_calls += 1
        offset = start_key["offset"] if start_key else 0
        page_number = offset // self.page_size + 1
        if self.fail_scan_on_page == page_number:
            raise StorageUnavailableError("scan failed")
        rows = list(self.rows.values())
        page = [copy.deepcopy(row) for row in rows[offset : offset + self.page_size]]
        next_offset = offset + self.page_size
        return page, ({"offset": next_offset} if next_offset < len(rows) else None)

    async def scan_all(self):
        start_key = None
        while True:
            items, start_key = await self.scan_page(start_key)
            for item in items:
                yield item
            if not start_key:
                break


class StubObjectStore(S3ObjectStore):
    """S3ObjectStore whose network calls are recorded instead of sent."""

    def __init__(self, *, reject_acl: bool = False, public_url_base: Optional[str] = None) -> None:
        super().__init__(None, "docs-bucket", region="us-east-1", public_url_base=public_url_base)
        self.reject_acl = reject_acl
        self.puts: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.objects: Dict[str, bytes] = {}
        self.put_error: Optional[Exception] = None

    async def put(self, key, body, content_type, *, cache_control=None, acl=None) -> None:
        self.puts.append({"key": key, "content_type": content_type, "cache_control": cache_control, "acl": acl})
        if self.put_error is not None:
            raise self.put_error
        if acl and self.reject_acl:
            raise AclUnsupportedError(f"Bucket {self.bucket} does not allow ACLs")
        self.objects[key] = body

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def presign(self, key: str, expires_in: int = 3600) -> str:
        return f"https://signed.example.com/{key}?expires={expires_in}"


class StubLambda:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.invocations: List[Dict[str, Any]] = []

    def invoke(self, **kwargs: Any) -> Dict[str, Any]:
        self.invocations.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"StatusCode": 202}


def build_record(document_id: str, **overrides: Any) -> DocumentRecord:
    payload: Dict[str, Any] = {
        "id": document_id,
        "title": f"Document {document_id}",
        "type": "personal",
        "customType": None,
        "description": None,
        "tags": [],
        "issueDate": None,
        "expiryDate": None,
        "fileUrl": f"https://files.example.com/{document_id}.pdf",
        "thumbnailUrl": None,
        "s3Key": f"documents/{document_id}/{document_id}.pdf",
        "thumbnailKey": None,
        "fileSize": 1024,
        "mimeType": "application/pdf",
        "fileName": f"{document_id}.pdf",
        "isTemporary": False,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    payload.update(overrides)
    return DocumentRecord(**payload)


@pytest.fixture
def table() -> StubTable:
    return StubTable()


@pytest.fixture
def provisioner(table: StubTable) -> TableProvisioner:
    return TableProvisioner(table, auto_create=True, ready_timeout_seconds=5)


@pytest.fixture
def repository(table: StubTable, provisioner: TableProvisioner) -> DocumentRepository:
    return DocumentRepository(table, provisioner)


@pytest.fixture
def object_store() -> StubObjectStore:
    return StubObjectStore()


@pytest.fixture
def uploads(object_store: StubObjectStore) -> UploadService:
    return UploadService(object_store)


@pytest.fixture
def lambda_client() -> StubLambda:
    return StubLambda()


@pytest.fixture
def thumbnails(lambda_client: StubLambda) -> ThumbnailTrigger:
    return ThumbnailTrigger(lambda_client, "resize-fn")


@pytest.fixture
def document_service(repository: DocumentRepository, uploads: UploadService, thumbnails: ThumbnailTrigger) -> DocumentService:
    return DocumentService(repository, uploads, thumbnails)
