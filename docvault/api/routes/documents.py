"""Document endpoints: listing, upload, read, partial update and delete."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError as PydanticValidationError

from docvault.api.dependencies import get_container, get_document_service, get_repository
from docvault.core.container import Container
from docvault.core.exceptions import DocumentNotFoundError, ValidationError
from docvault.models.document import DocumentCreate, DocumentFilters, DocumentUpdate, TagCount, TypeCount
from docvault.repository.documents import DocumentRepository
from docvault.services.documents import DocumentService
from docvault.utils.dates import parse_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_date(name: str, raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    parsed = parse_iso(raw)
    if parsed is None:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    return parsed


def _parse_tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError("tags must be a JSON array of strings") from exc
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValidationError("tags must be a JSON array of strings")
    return tags


@router.get("")
async def list_documents(
    search: Optional[str] = None,
    type: Optional[str] = None,
    tags: Optional[str] = None,
    isTemporary: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: DocumentService = Depends(get_document_service),
    container: Container = Depends(get_container),
) -> Dict[str, Any]:
    """List documents with optional filtering, sorting and pagination."""

    options: Dict[str, Any] = {
        "search": search or None,
        "type": type or None,
        "tags": [tag for tag in tags.split(",") if tag] if tags else None,
        "isTemporary": (isTemporary == "true") if isTemporary is not None else None,
        "startDate": _parse_date("startDate", startDate),
        "endDate": _parse_date("endDate", endDate),
        "page": _positive_int(page, 1),
        "limit": _positive_int(limit, container.settings.DEFAULT_PAGE_LIMIT),
    }
    if sortBy:
        options["sortBy"] = sortBy
    if sortOrder:
        options["sortOrder"] = sortOrder

    try:
        filters = DocumentFilters(**options)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid document filters: {exc.errors()[0]['msg']}") from exc

    result = await service.list_documents(filters)
    return {
        "documents": [record.to_api() for record in result.items],
        "pagination": {
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "totalPages": result.totalPages,
        },
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    title: str = Form(...),
    type: str = Form(...),
    customType: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    issueDate: Optional[str] = Form(None),
    expiryDate: Optional[str] = Form(None),
    isTemporary: Optional[str] = Form(None),
    service: DocumentService = Depends(get_document_service),
) -> Dict[str, Any]:
    """Upload a file with its metadata and return the stored document."""

    try:
        metadata = DocumentCreate(
            title=title,
            type=type,
            customType=customType or None,
            description=description or None,
            tags=_parse_tags(tags),
            issueDate=issueDate or None,
            expiryDate=expiryDate or None,
            isTemporary=isTemporary == "true",
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid document data: {exc.errors()[0]['msg']}") from exc

    body = await file.read()
    record = await service.upload_document(
        metadata,
        file_name=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        body=body,
    )
    return record.to_api()


@router.get("/stats/types", response_model=List[TypeCount])
async def document_counts_by_type(repository: DocumentRepository = Depends(get_repository)) -> List[TypeCount]:
    return await repository.count_by_type()


@router.get("/stats/tags", response_model=List[TagCount])
async def document_tag_counts(repository: DocumentRepository = Depends(get_repository)) -> List[TagCount]:
    return await repository.tag_counts()


@router.get("/{document_id}")
async def get_document(document_id: str, service: DocumentService = Depends(get_document_service)) -> Dict[str, Any]:
    record = await service.get_document(document_id)
    return record.to_api()


@router.patch("/{document_id}")
async def update_document(
    document_id: str,
    payload: DocumentUpdate,
    service: DocumentService = Depends(get_document_service),
) -> Dict[str, Any]:
    record = await service.update_document(document_id, payload)
    return record.to_api()


@router.delete("/{document_id}")
async def delete_document(document_id: str, service: DocumentService = Depends(get_document_service)) -> Dict[str, bool]:
    if not await service.delete_document(document_id):
        raise DocumentNotFoundError(document_id)
    return {"success": True}
