"""In-memory query pipeline: filter, sort and paginate a materialized collection.

The repository feeds this module every record from a full scan. Keeping the
pipeline free of I/O means the record source can later become an indexed
query without changing the repository contract.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Tuple

from docvault.models.document import DocumentFilters, DocumentPage, DocumentRecord, SortOrder
from docvault.utils.dates import parse_iso

DATE_FIELDS = frozenset({"createdAt", "updatedAt", "issueDate", "expiryDate"})

Predicate = Callable[[DocumentRecord], bool]


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def build_predicates(filters: DocumentFilters) -> List[Predicate]:
    """Predicates in evaluation order: type, temporary flag, tags, created range, search."""

    predicates: List[Predicate] = []

    if filters.type:
        predicates.append(lambda record: record.type == filters.type)

    if filters.isTemporary is not None:
        predicates.append(lambda record: record.isTemporary is filters.isTemporary)

    if filters.tags:
        wanted = set(filters.tags)
        predicates.append(lambda record: any(tag in wanted for tag in record.tags))

    if filters.startDate is not None or filters.endDate is not None:
        start = _aware(filters.startDate) if filters.startDate else None
        end = _aware(filters.endDate) if filters.endDate else None

        def in_range(record: DocumentRecord) -> bool:
            created = parse_iso(record.createdAt)
            if created is None:
                return False
            if start is not None and created < start:
                return False
            if end is not None and created > end:
                return False
            return True

        predicates.append(in_range)

    if filters.search:
        term = filters.search.lower()

        def matches(record: DocumentRecord) -> bool:
            haystacks = [record.title, record.description, *record.tags]
            return any(term in value.lower() for value in haystacks if value)

        predicates.append(matches)

    return predicates


def apply_filters(records: Iterable[DocumentRecord], filters: DocumentFilters) -> List[DocumentRecord]:
    filtered = list(records)
    for predicate in build_predicates(filters):
        filtered = [record for record in filtered if predicate(record)]
    return filtered


def _sort_key(field: str, value: Any) -> Optional[Tuple[int, Any]]:
    """Rank values by kind so mixed kinds never compare directly. None means missing."""

    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return (0, float(value))
    if isinstance(value, str):
        if field in DATE_FIELDS:
            parsed = parse_iso(value)
            if parsed is not None:
                return (1, parsed.timestamp())
        return (2, value)
    if isinstance(value, (list, tuple)):
        return (3, ",".join(str(item) for item in value))
    return (2, str(value))


def sort_records(records: Iterable[DocumentRecord], sort_by: str, order: SortOrder) -> List[DocumentRecord]:
    """Sort by `sort_by`; records lacking the field go last in either direction, ties by id."""

    present: List[Tuple[Tuple[int, Any], DocumentRecord]] = []
    missing: List[DocumentRecord] = []
    for record in records:
        key = _sort_key(sort_by, getattr(record, sort_by, None))
        if key is None:
            missing.append(record)
        else:
            present.append((key, record))

    # Two stable passes: id ascending first, then the requested key and direction
    present.sort(key=lambda pair: pair[1].id)
    present.sort(key=lambda pair: pair[0], reverse=order == SortOrder.DESC)
    missing.sort(key=lambda record: record.id)
    return [record for _, record in present] + missing


def paginate(records: List[DocumentRecord], page: int, limit: int) -> DocumentPage:
    total = len(records)
    start = (page - 1) * limit
    return DocumentPage(
        items=records[start : start + limit],
        total=total,
        page=page,
        limit=limit,
        totalPages=math.ceil(total / limit),
    )


def run_query(records: Iterable[DocumentRecord], filters: DocumentFilters) -> DocumentPage:
    filtered = apply_filters(records, filters)
    ordered = sort_records(filtered, filters.sortBy, filters.sortOrder)
    return paginate(ordered, filters.page, filters.limit)
