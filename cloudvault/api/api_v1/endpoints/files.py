from typing import Any, List, Optional

from fastapi import APIRouter, Depends, UploadFile, File, Form
from sqlalchemy.orm import Session

from cloudvault import models, schemas
from cloudvault.api import deps
from cloudvault.core.config import settings
from cloudvault.core.errors import ValidationError
from cloudvault.models.file import ROOT_FOLDER
from cloudvault.services import files as file_service
from cloudvault.services import folder_tree
from cloudvault.storage.object_store import ObjectStore

router = APIRouter()


async def read_upload(file: UploadFile) -> bytes:
    """
    Read the multipart body in 1MB chunks, refusing to buffer past the limit.
    """
    chunks = []
    total = 0
    while content := await file.read(1024 * 1024):
        total += len(content)
        if total > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(f"File size exceeds maximum allowed size of {settings.MAX_UPLOAD_SIZE} bytes")
        chunks.append(content)
    return b"".join(chunks)


@router.get("", response_model=List[schemas.FileRecord])
def read_files(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        folder_id: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
) -> Any:
    return file_service.list_files(
        db, owner_id=current_user.id, folder_id=folder_id, search=search, skip=skip, limit=limit
    )


@router.post("/upload", response_model=schemas.FileUploadResult, status_code=201)
async def upload_file(
        *,
        db: Session = Depends(deps.get_db),
        store: ObjectStore = Depends(deps.get_store),
        current_user: models.User = Depends(deps.get_current_user),
        file: UploadFile = File(...),
        folder_id: str = Form(ROOT_FOLDER),
        is_public: bool = Form(False),
) -> Any:
    """
    Upload a new file as version 1.
    """
    content = await read_upload(file)
    file_record = file_service.upload_file(
        db,
        store,
        owner_id=current_user.id,
        filename=file.filename,
        content=content,
        content_type=file.content_type,
        folder_id=folder_id,
        is_public=is_public,
    )
    return {"message": "File uploaded successfully", "file": file_record}


@router.put("/{file_id}", response_model=schemas.FileUploadResult)
async def replace_file(
        *,
        db: Session = Depends(deps.get_db),
        store: ObjectStore = Depends(deps.get_store),
        current_user: models.User = Depends(deps.get_current_user),
        file_id: str,
        file: UploadFile = File(...),
) -> Any:
    """
    Upload a new version of an existing file. The oldest version is dropped
    once more than MAX_VERSIONS are kept.
    """
    content = await read_upload(file)
    file_record, evicted = file_service.replace_version(
        db,
        store,
        file_id=file_id,
        requester_id=current_user.id,
        filename=file.filename,
        content=content,
        content_type=file.content_type,
    )
    message = "File updated successfully"
    if evicted is not None:
        message = (
            f"File updated successfully. Version {evicted} was removed due to version limit "
            f"(max {settings.MAX_VERSIONS} versions)"
        )
    return {"message": message, "file": file_record, "evicted_version": evicted}


@router.get("/{file_id}/download", response_model=schemas.DownloadInfo)
def download_file(
        file_id: str,
        version: Optional[int] = None,
        db: Session = Depends(deps.get_db),
        store: ObjectStore = Depends(deps.get_store),
        current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    return file_service.download(db, store, file_id=file_id, requester_id=current_user.id, version=version)


@router.get("/{file_id}/versions", response_model=schemas.VersionList)
def read_versions(
        file_id: str,
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    return file_service.list_versions(db, file_id=file_id, requester_id=current_user.id)


@router.put("/{file_id}/visibility", response_model=schemas.FileRecord)
def update_visibility(
        *,
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        file_id: str,
        visibility_in: schemas.VisibilityUpdate,
) -> Any:
    return file_service.set_visibility(
        db, file_id=file_id, requester_id=current_user.id, visibility=visibility_in.visibility
    )


@router.put("/{file_id}/move", response_model=schemas.FileRecord)
def move_file(
        *,
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        file_id: str,
        move_in: schemas.FileMove,
) -> Any:
    return folder_tree.move_file(
        db, file_id=file_id, target_folder_id=move_in.target_folder_id, owner_id=current_user.id
    )


@router.delete("/{file_id}", response_model=schemas.FileDeleteResult)
def delete_file(
        file_id: str,
        db: Session = Depends(deps.get_db),
        store: ObjectStore = Depends(deps.get_store),
        current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    deleted = file_service.delete_file(db, store, file_id=file_id, requester_id=current_user.id)
    return {"message": "File and all versions deleted successfully", "deleted_versions": deleted}
