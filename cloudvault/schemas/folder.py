from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime
from .file import FileRecord

class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: str = Field("root", min_length=1, max_length=64)
    # Optional client supplied id; generated when omitted
    id: Optional[str] = Field(None, min_length=1, max_length=64)

class FolderUpdate(BaseModel):
    name: Optional[str] = None
    parent_id: Optional[str] = None

class Folder(BaseModel):
    id: str
    owner_id: str
    name: str
    parent_id: str
    row_version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FolderMove(BaseModel):
    target_id: str = Field("root", min_length=1, max_length=64)

class FolderContent(BaseModel):
    folder_id: str
    folders: List[Folder]
    files: List[FileRecord]

class FolderDeleteResult(BaseModel):
    deleted_folders: int
    deleted_files: int
    failed: int
