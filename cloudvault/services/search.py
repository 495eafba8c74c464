"""
Owner-scoped file search: keyword, MIME family, recency, statistics and
sorted listings. Every query only ever sees the requester's own files.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from cloudvault import crud
from cloudvault.core.errors import ValidationError
from cloudvault.utils.file_utils import format_bytes

logger = logging.getLogger(__name__)

# File family -> MIME prefixes; the first family that matches wins
TYPE_MAPPING = {
    "image": ["image/"],
    "video": ["video/"],
    "audio": ["audio/"],
    "pdf": ["application/pdf"],
    "document": [
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml",
    ],
    "text": ["text/"],
}
OTHER_TYPE = "other"

# Accepted sortBy spellings (lowercased) -> crud sort column
SORT_ALIASES = {
    "name": "name",
    "filename": "name",
    "updatedat": "updated_at",
    "updated": "updated_at",
    "createdat": "created_at",
    "created": "created_at",
    "size": "size",
    "type": "type",
    "mimetype": "type",
}
SORT_DIRECTIONS = ("asc", "desc")

SORT_OPTIONS = {
    "sort_by": [
        {"value": "name", "label": "Name", "description": "Sort alphabetically by filename"},
        {"value": "updatedAt", "label": "Last Modified", "description": "Sort by last modified date"},
        {"value": "createdAt", "label": "Date Created", "description": "Sort by creation date"},
        {"value": "size", "label": "Size", "description": "Sort by file size"},
        {"value": "type", "label": "Type", "description": "Sort by file type"},
    ],
    "sort_direction": [
        {"value": "asc", "label": "Ascending", "description": "A-Z, oldest first, smallest first"},
        {"value": "desc", "label": "Descending", "description": "Z-A, newest first, largest first"},
    ],
}

MIN_KEYWORD_LENGTH = 2
RECENT_UPLOAD_DAYS = 7


def clamp(value: Optional[int], default: int, maximum: int) -> int:
    """Missing or non-positive values fall back to ``default``; large ones are capped."""
    if value is None or value < 1:
        return default
    return min(value, maximum)


def classify_mime(mime_type: Optional[str]) -> str:
    if mime_type:
        for family, prefixes in TYPE_MAPPING.items():
            if any(mime_type.startswith(prefix) for prefix in prefixes):
                return family
    return OTHER_TYPE


def normalize_sort(sort_by: Optional[str], sort_direction: Optional[str]) -> Tuple[str, str]:
    """Map a public sort field and direction onto ``(column, "asc"|"desc")``."""
    column = SORT_ALIASES.get((sort_by or "").lower())
    if column is None:
        raise ValidationError(f"Invalid sortBy value. Supported: {', '.join(SORT_ALIASES)}")
    direction = (sort_direction or "").lower()
    if direction not in SORT_DIRECTIONS:
        raise ValidationError('sortDirection must be "asc" or "desc"')
    return column, direction


def search_by_keyword(
    db: Session, *, owner_id: str, keyword: Optional[str], sort_by: str = "updatedAt",
    sort_direction: str = "desc", limit: int = 50
) -> dict:
    keyword = (keyword or "").strip()
    if not keyword:
        raise ValidationError("Search query (q) is required")
    if len(keyword) < MIN_KEYWORD_LENGTH:
        raise ValidationError(f"Search query must be at least {MIN_KEYWORD_LENGTH} characters")
    column, direction = normalize_sort(sort_by, sort_direction)
    files = crud.file.get_by_owner(
        db, owner_id=owner_id, search=keyword, sort_by=column, descending=direction == "desc",
        limit=clamp(limit, 50, 200)
    )
    logger.info("Keyword search %r for %s: %d files", keyword, owner_id, len(files))
    return {"query": keyword, "files": files, "count": len(files), "sort_by": column, "sort_direction": direction}


def search_by_type(db: Session, *, owner_id: str, file_type: Optional[str], limit: int = 50) -> dict:
    family = (file_type or "").lower()
    prefixes = TYPE_MAPPING.get(family)
    if prefixes is None:
        raise ValidationError(f"Invalid type. Supported types: {', '.join(TYPE_MAPPING)}")
    files = crud.file.get_by_mime_prefixes(db, owner_id=owner_id, prefixes=prefixes, limit=clamp(limit, 50, 200))
    return {"type": family, "files": files, "count": len(files)}


def recent_files(
    db: Session, *, owner_id: str, days: Optional[int] = 7, limit: Optional[int] = 20,
    now: Optional[datetime] = None
) -> dict:
    days = clamp(days, 7, 30)
    cutoff = (now or datetime.utcnow()) - timedelta(days=days)
    files = crud.file.get_created_since(db, owner_id=owner_id, since=cutoff, limit=clamp(limit, 20, 100))
    return {"period": f"Last {days} days", "cutoff_date": cutoff, "files": files, "count": len(files)}


def file_stats(db: Session, *, owner_id: str, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    recent_cutoff = now - timedelta(days=RECENT_UPLOAD_DAYS)
    breakdown = {family: 0 for family in TYPE_MAPPING}
    breakdown[OTHER_TYPE] = 0
    total_files = 0
    total_size = 0
    recent_uploads = 0
    for mime_type, size, created_at in crud.file.get_stat_rows(db, owner_id=owner_id):
        total_files += 1
        total_size += size or 0
        breakdown[classify_mime(mime_type)] += 1
        if created_at is not None and created_at >= recent_cutoff:
            recent_uploads += 1
    return {
        "owner_id": owner_id,
        "total_files": total_files,
        "total_size": total_size,
        "total_size_formatted": format_bytes(total_size),
        "type_breakdown": breakdown,
        "recent_uploads": recent_uploads,
        "last_updated": now,
    }


def list_sorted(
    db: Session, *, owner_id: str, sort_by: str = "updatedAt", sort_direction: str = "desc",
    limit: Optional[int] = 50, folder_id: Optional[str] = None
) -> dict:
    column, direction = normalize_sort(sort_by, sort_direction)
    files: List = crud.file.get_by_owner(
        db, owner_id=owner_id, folder_id=folder_id or None, sort_by=column,
        descending=direction == "desc", limit=clamp(limit, 50, 200)
    )
    return {"files": files, "count": len(files), "sort_by": column, "sort_direction": direction}
