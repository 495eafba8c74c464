from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from datetime import datetime

Visibility = Literal["private", "public"]


# Properties to receive on record creation (built by the upload service)
class FileRecordCreate(BaseModel):
    id: str
    owner_id: str
    display_name: str
    mime_type: str = "application/octet-stream"
    folder_id: str = "root"
    visibility: Visibility = "private"
    size: int = Field(0, ge=0)

# Properties to receive on record update
class FileRecordUpdate(BaseModel):
    visibility: Optional[Visibility] = None
    folder_id: Optional[str] = None

class FileVersion(BaseModel):
    version_number: int
    byte_size: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Properties to return to client
class FileRecord(BaseModel):
    id: str
    owner_id: str
    display_name: str
    mime_type: str
    folder_id: str
    visibility: Visibility
    current_version: int
    size: int
    versions: List[FileVersion] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FileUploadResult(BaseModel):
    message: str
    file: FileRecord
    evicted_version: Optional[int] = None

class VersionInfo(BaseModel):
    version: int
    size: int
    created_at: Optional[datetime] = None
    is_current: bool

class VersionList(BaseModel):
    file_id: str
    filename: str
    current_version: int
    versions: List[VersionInfo]

class DownloadInfo(BaseModel):
    download_url: str
    filename: str
    version: int
    size: int
    expires_in: int

class FileDeleteResult(BaseModel):
    message: str
    deleted_versions: int

class VisibilityUpdate(BaseModel):
    visibility: Visibility

class FileMove(BaseModel):
    target_folder_id: str = Field("root", min_length=1, max_length=64)
