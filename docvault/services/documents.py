"""Document lifecycle orchestration across object storage and the metadata table."""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from typing import Optional, Set

from docvault.core.exceptions import DocumentNotFoundError, ValidationError
from docvault.models.document import (
    DocumentCreate,
    DocumentFilters,
    DocumentPage,
    DocumentRecord,
    DocumentType,
    DocumentUpdate,
)
from docvault.repository.documents import DocumentRepository
from docvault.storage.thumbnails import ThumbnailTrigger
from docvault.storage.uploads import UploadService
from docvault.utils.dates import normalize_date, to_iso, utc_now

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/jpg",
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
UPLOAD_CACHE_CONTROL = "public, max-age=31536000, immutable"
DOCUMENT_KEY_PREFIX = "documents"

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_KEY_CHARS.sub("_", file_name or "")


def file_extension(file_name: str, content_type: str) -> str:
    if file_name and "." in file_name:
        extension = file_name.rsplit(".", 1)[-1].lower()
        if extension:
            return extension
    return content_type.split("/")[-1] or "bin"


class DocumentService:
    """Upload, update and delete documents, keeping binaries and metadata consistent."""

    def __init__(
        self,
        repository: DocumentRepository,
        uploads: UploadService,
        thumbnails: ThumbnailTrigger,
        *,
        make_public: bool = False,
        thumbnail_prefix: str = "thumbnails",
        max_upload_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self.repository = repository
        self.uploads = uploads
        self.thumbnails = thumbnails
        self.make_public = make_public
        self.thumbnail_prefix = thumbnail_prefix
        self.max_upload_bytes = max_upload_bytes
        self._background: Set[asyncio.Task[None]] = set()

    def object_key(self, document_id: str, file_name: str, content_type: str) -> str:
        sanitized = sanitize_file_name(file_name)
        if not sanitized:
            sanitized = f"{document_id}.{file_extension(file_name, content_type)}"
        return f"{DOCUMENT_KEY_PREFIX}/{document_id}/{sanitized}"

    def thumbnail_key(self, document_id: str) -> str:
        return f"{self.thumbnail_prefix}/{document_id}.jpg"

    def _validate_file(self, content_type: str, size: int) -> None:
        if size > self.max_upload_bytes:
            raise ValidationError(f"File size exceeds {self.max_upload_bytes // (1024 * 1024)}MB limit")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"Invalid file type: {content_type}")

    async def upload_document(
        self,
        metadata: DocumentCreate,
        *,
        file_name: str,
        content_type: str,
        body: bytes,
    ) -> DocumentRecord:
        """Store the binary, persist its metadata record and queue thumbnailing for images."""

        self._validate_file(content_type, len(body))
        try:
            issue_date = normalize_date(metadata.issueDate)
            expiry_date = normalize_date(metadata.expiryDate)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        document_id = str(uuid.uuid4())
        key = self.object_key(document_id, file_name, content_type)
        upload = await self.uploads.upload(
            key,
            body,
            content_type,
            cache_control=UPLOAD_CACHE_CONTROL,
            make_public=self.make_public,
        )

        is_image = content_type.startswith("image/")
        thumbnail_key = self.thumbnail_key(document_id) if is_image else None
        # A private primary means the thumbnail cannot be addressed on its own yet
        thumbnail_url = self.uploads.public_url(thumbnail_key) if thumbnail_key and upload.is_public else upload.url

        now = to_iso(utc_now())
        record = DocumentRecord(
            id=document_id,
            title=metadata.title,
            type=metadata.type,
            customType=(metadata.customType or None) if metadata.type == DocumentType.CUSTOM else None,
            description=metadata.description or None,
            tags=list(metadata.tags),
            issueDate=issue_date,
            expiryDate=expiry_date,
            fileUrl=upload.url,
            thumbnailUrl=thumbnail_url,
            s3Key=key,
            thumbnailKey=thumbnail_key,
            fileSize=len(body),
            mimeType=content_type,
            fileName=file_name,
            isTemporary=metadata.isTemporary,
            createdAt=now,
            updatedAt=now,
        )
        await self.repository.create(record)

        if thumbnail_key:
            self._schedule_thumbnail(key, thumbnail_key, content_type)
        return record

    def _schedule_thumbnail(self, key: str, thumbnail_key: str, content_type: str) -> None:
        task = asyncio.create_task(
            self.thumbnails.trigger(
                bucket=self.uploads.bucket,
                key=key,
                target_key=thumbnail_key,
                content_type=content_type,
            )
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def refresh_urls(self, record: DocumentRecord) -> DocumentRecord:
        """Re-sign privately stored objects so reads never hand out expired links."""

        if record.fileUrl == self.uploads.public_url(record.s3Key):
            return record
        file_url = await self.uploads.presigned_url(record.s3Key)
        thumbnail_url = record.thumbnailUrl
        if thumbnail_url == record.fileUrl:
            thumbnail_url = file_url
        return record.model_copy(update={"fileUrl": file_url, "thumbnailUrl": thumbnail_url})

    async def list_documents(self, filters: Optional[DocumentFilters] = None) -> DocumentPage:
        page = await self.repository.list(filters)
        items = [await self.refresh_urls(record) for record in page.items]
        return page.model_copy(update={"items": items})

    async def get_document(self, document_id: str) -> DocumentRecord:
        record = await self.repository.get_by_id(document_id)
        if record is None:
            raise DocumentNotFoundError(document_id)
        return await self.refresh_urls(record)

    async def update_document(self, document_id: str, changes: DocumentUpdate) -> DocumentRecord:
        fields = changes.changes()
        for date_field in ("issueDate", "expiryDate"):
            if date_field in fields:
                try:
                    fields[date_field] = normalize_date(fields[date_field])
                except ValueError as exc:
                    raise ValidationError(str(exc)) from exc
        return await self.refresh_urls(await self.repository.update(document_id, fields))

    async def delete_document(self, document_id: str) -> bool:
        """Delete binaries first, then the metadata row. Returns False when the id is unknown."""

        record = await self.repository.get_by_id(document_id)
        if record is None:
            return False

        await self.uploads.delete_object(record.s3Key)
        if record.thumbnailKey:
            await self.uploads.delete_object(record.thumbnailKey)
        await self.repository.delete(document_id)
        logger.info("Removed document %s and its stored objects", document_id)
        return True

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding thumbnail triggers (shutdown and tests)."""

        if not self._background:
            return
        await asyncio.wait(set(self._background), timeout=timeout)
