"""Document metadata models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_TAGS = 10
MAX_TAG_LENGTH = 20


class DocumentType(str, Enum):
    """Fixed document categories."""

    IDENTIFICATION = "identification"
    FINANCIAL = "financial"
    MEDICAL = "medical"
    LEGAL = "legal"
    EDUCATION = "education"
    PERSONAL = "personal"
    WORK = "work"
    CUSTOM = "custom"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class DocumentRecord(BaseModel):
    """A document's metadata row as stored in the documents table."""

    id: str = Field(..., description="Primary key (UUID4)")
    title: str = Field(..., description="Display title")
    type: DocumentType = Field(..., description="Document category")
    customType: Optional[str] = Field(None, description="Category label when type is custom")
    description: Optional[str] = Field(None, description="Free-form description")
    tags: List[str] = Field(default_factory=list, description="Tags in display order")
    issueDate: Optional[str] = Field(None, description="ISO-8601 issue date")
    expiryDate: Optional[str] = Field(None, description="ISO-8601 expiry date")
    fileUrl: str = Field(..., description="Public or presigned URL of the stored file")
    thumbnailUrl: Optional[str] = Field(None, description="Thumbnail URL")
    s3Key: str = Field(..., description="Object key of the stored file")
    thumbnailKey: Optional[str] = Field(None, description="Object key of the thumbnail")
    fileSize: int = Field(..., ge=0, description="File size in bytes")
    mimeType: str = Field(..., description="MIME type of the stored file")
    fileName: str = Field(..., description="Original client filename")
    isTemporary: bool = Field(False, description="Advisory temporary flag")
    createdAt: str = Field(..., description="Creation timestamp")
    updatedAt: str = Field(..., description="Last mutation timestamp")

    @field_validator("tags", mode="before")
    def _tags_default(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_item(self) -> Dict[str, Any]:
        """Plain attribute map written to the table."""

        return self.model_dump(mode="json")

    def to_api(self) -> Dict[str, Any]:
        """Client-facing representation; the thumbnail always resolves to something renderable."""

        payload = self.model_dump(mode="json")
        payload["thumbnailUrl"] = self.thumbnailUrl or self.fileUrl
        payload["_id"] = self.id
        return payload


class DocumentCreate(BaseModel):
    """Metadata accepted alongside an uploaded file."""

    title: str = Field(..., min_length=1, max_length=100)
    type: DocumentType
    customType: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)
    issueDate: Optional[str] = None
    expiryDate: Optional[str] = None
    isTemporary: bool = False

    @field_validator("tags")
    def _validate_tags(cls, value: List[str]) -> List[str]:
        for tag in value:
            if len(tag) > MAX_TAG_LENGTH:
                raise ValueError(f"Tag {tag!r} is longer than {MAX_TAG_LENGTH} characters")
        return value


class DocumentUpdate(BaseModel):
    """Partial metadata update. Only explicitly supplied fields are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[DocumentType] = None
    customType: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[str]] = Field(None, max_length=MAX_TAGS)
    issueDate: Optional[str] = None
    expiryDate: Optional[str] = None
    isTemporary: Optional[bool] = None

    @field_validator("title", "type", "tags", "isTemporary", mode="before")
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @field_validator("tags")
    def _validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        for tag in value or []:
            if len(tag) > MAX_TAG_LENGTH:
                raise ValueError(f"Tag {tag!r} is longer than {MAX_TAG_LENGTH} characters")
        return value

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class DocumentFilters(BaseModel):
    """Query options for listing documents."""

    search: Optional[str] = None
    type: Optional[str] = None
    tags: Optional[List[str]] = None
    isTemporary: Optional[bool] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    sortBy: str = "createdAt"
    sortOrder: SortOrder = SortOrder.DESC
    page: int = Field(1, ge=1)
    limit: int = Field(12, ge=1)

    @field_validator("sortBy")
    def _known_sort_field(cls, value: str) -> str:
        if value not in DocumentRecord.model_fields:
            raise ValueError(f"Cannot sort by unknown field {value!r}")
        return value


class DocumentPage(BaseModel):
    items: List[DocumentRecord]
    total: int
    page: int
    limit: int
    totalPages: int


class TypeCount(BaseModel):
    type: DocumentType
    count: int


class TagCount(BaseModel):
    tag: str
    count: int


@dataclass(frozen=True)
class UploadResult:
    """Outcome of storing a binary: where it lives and how it can be read."""

    key: str
    url: str
    is_public: bool
