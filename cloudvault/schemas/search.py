from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel

from .file import FileRecord


class KeywordSearchResult(BaseModel):
    query: str
    files: List[FileRecord]
    count: int
    sort_by: str
    sort_direction: str

class TypeSearchResult(BaseModel):
    type: str
    files: List[FileRecord]
    count: int

class RecentFiles(BaseModel):
    period: str
    cutoff_date: datetime
    files: List[FileRecord]
    count: int

class FileStats(BaseModel):
    owner_id: str
    total_files: int
    total_size: int
    total_size_formatted: str
    # Count per family, plus "other"
    type_breakdown: Dict[str, int]
    recent_uploads: int
    last_updated: datetime

class SortedFileList(BaseModel):
    files: List[FileRecord]
    count: int
    sort_by: str
    sort_direction: str

class SortOption(BaseModel):
    value: str
    label: str
    description: str

class SortOptions(BaseModel):
    sort_by: List[SortOption]
    sort_direction: List[SortOption]
