from __future__ import annotations

from fastapi import Depends, Request

from docvault.core.container import Container
from docvault.repository.documents import DocumentRepository
from docvault.services.documents import DocumentService


async def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_repository(container: Container = Depends(get_container)) -> DocumentRepository:
    return container.repository


async def get_document_service(container: Container = Depends(get_container)) -> DocumentService:
    return container.documents
