from .document import (
    DocumentCreate,
    DocumentFilters,
    DocumentPage,
    DocumentRecord,
    DocumentType,
    DocumentUpdate,
    SortOrder,
    TagCount,
    TypeCount,
    UploadResult,
)

__all__ = [
    "DocumentCreate",
    "DocumentFilters",
    "DocumentPage",
    "DocumentRecord",
    "DocumentType",
    "DocumentUpdate",
    "SortOrder",
    "TagCount",
    "TypeCount",
    "UploadResult",
]
