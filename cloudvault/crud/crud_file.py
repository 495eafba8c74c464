import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from cloudvault.core.errors import Conflict, NotFound
from cloudvault.crud.base import CRUDBase
from cloudvault.models.file import FileRecord, FileVersion, ROOT_FOLDER
from cloudvault.models.folder import Folder
from cloudvault.schemas.file import FileRecordCreate, FileRecordUpdate
from datetime import datetime

logger = logging.getLogger(__name__)

# Public sort names -> columns
SORT_COLUMNS = {
    "name": func.lower(FileRecord.display_name),
    "updated_at": FileRecord.updated_at,
    "created_at": FileRecord.created_at,
    "size": FileRecord.size,
    "type": FileRecord.mime_type,
}


class CRUDFileRecord(CRUDBase[FileRecord, FileRecordCreate, FileRecordUpdate]):
    def get_by_owner(
        self, db: Session, *, owner_id: str, folder_id: Optional[str] = None, search: Optional[str] = None,
        sort_by: str = "created_at", descending: bool = True, skip: int = 0, limit: int = 100
    ) -> List[FileRecord]:
        query = db.query(FileRecord).filter(FileRecord.owner_id == owner_id)

        if search:
            # Search mode: ignore folder, literal case-insensitive substring over all of the owner's files
            query = query.filter(func.lower(FileRecord.display_name).contains(search.lower(), autoescape=True))
        elif folder_id is not None:
            query = query.filter(FileRecord.folder_id == folder_id)

        column = SORT_COLUMNS[sort_by]
        query = query.order_by(column.desc() if descending else column.asc(), FileRecord.id.asc())
        return query.offset(skip).limit(limit).all()

    def get_by_mime_prefixes(
        self, db: Session, *, owner_id: str, prefixes: Sequence[str], limit: int = 50
    ) -> List[FileRecord]:
        return db.query(FileRecord).filter(
            FileRecord.owner_id == owner_id,
            or_(*[FileRecord.mime_type.startswith(prefix, autoescape=True) for prefix in prefixes])
        ).order_by(FileRecord.created_at.desc()).limit(limit).all()

    def get_created_since(self, db: Session, *, owner_id: str, since: datetime, limit: int = 20) -> List[FileRecord]:
        return db.query(FileRecord).filter(
            FileRecord.owner_id == owner_id,
            FileRecord.created_at >= since
        ).order_by(FileRecord.created_at.desc()).limit(limit).all()

    def get_stat_rows(self, db: Session, *, owner_id: str):
        """``(mime_type, size, created_at)`` for every file the owner has."""
        return db.query(FileRecord.mime_type, FileRecord.size, FileRecord.created_at).filter(
            FileRecord.owner_id == owner_id
        ).all()

    def get_in_folders(self, db: Session, *, owner_id: str, folder_ids: Iterable[str]) -> List[FileRecord]:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return []
        return db.query(FileRecord).filter(
            FileRecord.owner_id == owner_id,
            FileRecord.folder_id.in_(folder_ids)
        ).all()

    def _touch_folder(self, db: Session, folder_id: str) -> bool:
        # New content in a folder bumps its row_version so a concurrent cascade
        # delete working from an older snapshot leaves the folder alone
        if folder_id == ROOT_FOLDER:
            return True
        result = db.execute(
            update(Folder)
            .where(Folder.id == folder_id)
            .values(row_version=Folder.row_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def create_with_version(
        self, db: Session, *, obj_in: FileRecordCreate, storage_key: str
    ) -> FileRecord:
        now = datetime.utcnow()
        db_obj = FileRecord(
            id=obj_in.id,
            owner_id=obj_in.owner_id,
            display_name=obj_in.display_name,
            mime_type=obj_in.mime_type,
            folder_id=obj_in.folder_id or ROOT_FOLDER,
            visibility=obj_in.visibility,
            current_version=1,
            size=obj_in.size,
            created_at=now,
            updated_at=now,
        )
        db_obj.versions.append(
            FileVersion(version_number=1, storage_key=storage_key, byte_size=obj_in.size, created_at=now)
        )
        db.add(db_obj)
        if not self._touch_folder(db, db_obj.folder_id):
            db.rollback()
            raise NotFound("Folder not found")
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict(f"File {obj_in.id} already exists")
        db.refresh(db_obj)
        return db_obj

    def commit_version(
        self,
        db: Session,
        *,
        db_obj: FileRecord,
        expected_version: int,
        new_version: FileVersion,
        evicted_number: Optional[int],
        display_name: str,
        mime_type: str,
    ) -> FileRecord:
        """
        Conditional write of a new version.

        The row is only updated if ``current_version`` still equals
        ``expected_version``; otherwise a concurrent writer got there first and
        ``Conflict`` is raised with nothing written.
        """
        now = datetime.utcnow()
        stmt = (
            update(FileRecord)
            .where(FileRecord.id == db_obj.id, FileRecord.current_version == expected_version)
            .values(
                current_version=new_version.version_number,
                size=new_version.byte_size,
                display_name=display_name,
                mime_type=mime_type,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        if result.rowcount != 1:
            db.rollback()
            raise Conflict(f"File {db_obj.id} was modified concurrently, retry the upload")

        new_version.file_id = db_obj.id
        new_version.created_at = now
        db.add(new_version)
        if evicted_number is not None:
            db.query(FileVersion).filter(
                FileVersion.file_id == db_obj.id,
                FileVersion.version_number == evicted_number
            ).delete()
        try:
            db.commit()
        except IntegrityError:
            # Unique (file_id, version_number) backs up the precondition
            db.rollback()
            raise Conflict(f"File {db_obj.id} was modified concurrently, retry the upload")
        db.refresh(db_obj)
        return db_obj

    def revert_version(
        self,
        db: Session,
        *,
        file_id: str,
        failed_version: int,
        previous_version: int,
        previous: Dict[str, Any],
        restore=None,
    ) -> bool:
        """
        Undo a ``commit_version`` whose bytes never reached the object store.

        Only applies while ``failed_version`` is still current. ``restore`` is
        the evicted version snapshot, re-inserted since its object was not
        deleted yet.
        """
        result = db.execute(
            update(FileRecord)
            .where(FileRecord.id == file_id, FileRecord.current_version == failed_version)
            .values(current_version=previous_version, updated_at=datetime.utcnow(), **previous)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.error("Could not revert file %s from v%d, it moved on", file_id, failed_version)
            return False
        db.query(FileVersion).filter(
            FileVersion.file_id == file_id,
            FileVersion.version_number == failed_version
        ).delete()
        if restore is not None:
            db.add(FileVersion(
                file_id=file_id,
                version_number=restore.version_number,
                storage_key=restore.storage_key,
                byte_size=restore.byte_size,
                created_at=restore.created_at,
            ))
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Could not revert file %s from v%d: %s", file_id, failed_version, e)
            return False
        return True

    def move(self, db: Session, *, db_obj: FileRecord, folder_id: str) -> FileRecord:
        db_obj.folder_id = folder_id
        db_obj.updated_at = datetime.utcnow()
        db.add(db_obj)
        if not self._touch_folder(db, folder_id):
            db.rollback()
            raise NotFound("Target folder not found")
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def set_visibility(self, db: Session, *, db_obj: FileRecord, visibility: str) -> FileRecord:
        return self.update(db, db_obj=db_obj, obj_in={"visibility": visibility, "updated_at": datetime.utcnow()})

file = CRUDFileRecord(FileRecord)
