from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from cloudvault.core.errors import Conflict
from cloudvault.crud.base import CRUDBase
from cloudvault.models.folder import Folder
from cloudvault.models.file import ROOT_FOLDER
from cloudvault.schemas.folder import FolderCreate, FolderUpdate
from datetime import datetime


class CRUDFolder(CRUDBase[Folder, FolderCreate, FolderUpdate]):
    def create_with_owner(
        self, db: Session, *, id: str, owner_id: str, name: str, parent_id: str = ROOT_FOLDER
    ) -> Folder:
        now = datetime.utcnow()
        db_obj = Folder(
            id=id,
            owner_id=owner_id,
            name=name,
            parent_id=parent_id,
            row_version=1,
            created_at=now,
            updated_at=now
        )
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict(f"Folder {id} already exists")
        db.refresh(db_obj)
        return db_obj

    def get_by_owner(
        self, db: Session, *, owner_id: str, parent_id: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Folder]:
        query = db.query(Folder).filter(Folder.owner_id == owner_id)
        if parent_id is not None:
            query = query.filter(Folder.parent_id == parent_id)
        return query.order_by(Folder.created_at.asc(), Folder.id.asc()).offset(skip).limit(limit).all()

    def get_parent_links(self, db: Session, *, owner_id: str) -> List[Tuple[str, str, int]]:
        """``(id, parent_id, row_version)`` for every folder the owner has."""
        return db.query(Folder.id, Folder.parent_id, Folder.row_version).filter(Folder.owner_id == owner_id).all()

    def remove_conditional(self, db: Session, *, folder_id: str, row_version: int) -> bool:
        """
        Delete ``folder_id`` only if it still carries ``row_version``.

        Returns False when the row changed (or vanished) since it was read.
        """
        result = db.execute(
            delete(Folder).where(Folder.id == folder_id, Folder.row_version == row_version)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            return False
        db.commit()
        return True

    def move_conditional(
        self,
        db: Session,
        *,
        folder_id: str,
        folder_row_version: int,
        target_id: str,
        target_row_version: Optional[int],
    ) -> Folder:
        """
        Re-parent ``folder_id`` under ``target_id`` in one transaction.

        Both rows must still carry the row versions seen when the cycle check
        ran. The target is bumped too, so a concurrent move of the target
        (e.g. the reverse move) fails its own precondition.
        """
        moved = db.execute(
            update(Folder)
            .where(Folder.id == folder_id, Folder.row_version == folder_row_version)
            .values(parent_id=target_id, row_version=Folder.row_version + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount != 1:
            db.rollback()
            raise Conflict(f"Folder {folder_id} was modified concurrently")

        if target_id != ROOT_FOLDER:
            touched = db.execute(
                update(Folder)
                .where(Folder.id == target_id, Folder.row_version == target_row_version)
                .values(row_version=Folder.row_version + 1)
                .execution_options(synchronize_session=False)
            )
            if touched.rowcount != 1:
                db.rollback()
                raise Conflict(f"Folder {target_id} was modified concurrently")

        db.commit()
        return self.get(db, folder_id)

folder = CRUDFolder(Folder)
