from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cloudvault import crud, models, schemas
from cloudvault.api import deps
from cloudvault.services import folder_tree
from cloudvault.storage.object_store import ObjectStore

router = APIRouter()


@router.post("", response_model=schemas.Folder, status_code=201)
def create_folder(
        *,
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        folder_in: schemas.FolderCreate,
) -> Any:
    return folder_tree.create_folder(
        db,
        owner_id=current_user.id,
        name=folder_in.name,
        parent_id=folder_in.parent_id,
        folder_id=folder_in.id,
    )


@router.get("", response_model=List[schemas.Folder])
def read_folders(
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        skip: int = 0,
        limit: int = 1000,
) -> Any:
    return crud.folder.get_by_owner(db, owner_id=current_user.id, skip=skip, limit=limit)


@router.get("/{folder_id}/content", response_model=schemas.FolderContent)
def read_folder_content(
        folder_id: str,
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        skip: int = 0,
        limit: int = 100,
) -> Any:
    """
    Subfolders and files directly inside a folder. Use "root" for the top level.
    ``skip`` and ``limit`` page the folders and the files independently.
    """
    folders, files = folder_tree.list_children(
        db, folder_id=folder_id, owner_id=current_user.id, skip=skip, limit=limit
    )
    return {"folder_id": folder_id, "folders": folders, "files": files}


@router.put("/{folder_id}/move", response_model=schemas.Folder)
def move_folder(
        *,
        db: Session = Depends(deps.get_db),
        current_user: models.User = Depends(deps.get_current_user),
        folder_id: str,
        move_in: schemas.FolderMove,
) -> Any:
    return folder_tree.move_folder(db, folder_id=folder_id, target_id=move_in.target_id, owner_id=current_user.id)


@router.delete("/{folder_id}", response_model=schemas.FolderDeleteResult)
def delete_folder(
        folder_id: str,
        db: Session = Depends(deps.get_db),
        store: ObjectStore = Depends(deps.get_store),
        current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Delete a folder with everything below it. Partial failures are reported
    in the counts instead of failing the whole request.
    """
    summary = folder_tree.delete_folder_recursive(db, store, folder_id=folder_id, owner_id=current_user.id)
    return {
        "deleted_folders": summary.deleted_folders,
        "deleted_files": summary.deleted_files,
        "failed": summary.failed,
    }
