from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cloudvault import models, schemas
from cloudvault.api import deps
from cloudvault.services import search

router = APIRouter()


@router.get("", response_model=schemas.KeywordSearchResult)
def search_files(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        q: Optional[str] = None,
        limit: int = 50,
        sort_by: str = Query("updatedAt", alias="sortBy"),
        sort_direction: str = Query("desc", alias="sortDirection"),
) -> Any:
    """
    Case-insensitive substring search over the caller's file names.
    """
    return search.search_by_keyword(
        db, owner_id=current_user.id, keyword=q, sort_by=sort_by, sort_direction=sort_direction, limit=limit
    )


@router.get("/by-type", response_model=schemas.TypeSearchResult)
def search_files_by_type(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        type: Optional[str] = None,
        limit: int = 50,
) -> Any:
    """
    Files of one family: image, video, audio, pdf, document or text.
    """
    return search.search_by_type(db, owner_id=current_user.id, file_type=type, limit=limit)


@router.get("/recent", response_model=schemas.RecentFiles)
def read_recent_files(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        days: int = 7,
        limit: int = 20,
) -> Any:
    return search.recent_files(db, owner_id=current_user.id, days=days, limit=limit)


@router.get("/stats", response_model=schemas.FileStats)
def read_file_stats(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    return search.file_stats(db, owner_id=current_user.id)


@router.get("/list", response_model=schemas.SortedFileList)
def list_sorted_files(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        sort_by: str = Query("updatedAt", alias="sortBy"),
        sort_direction: str = Query("desc", alias="sortDirection"),
        limit: int = 50,
        folder_id: Optional[str] = Query(None, alias="folderId"),
) -> Any:
    return search.list_sorted(
        db, owner_id=current_user.id, sort_by=sort_by, sort_direction=sort_direction, limit=limit,
        folder_id=folder_id
    )


@router.get("/sort-options", response_model=schemas.SortOptions)
def read_sort_options(
        current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    return search.SORT_OPTIONS
