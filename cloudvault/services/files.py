"""
Upload, replace-version, download and delete for single files.

Metadata is written first and is authoritative. Object deletion that follows
a metadata write is best-effort: failures are logged and leave an orphaned
object behind rather than failing the request.
"""
import logging
import uuid
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cloudvault import crud
from cloudvault.core.config import settings
from cloudvault.core.errors import CloudVaultError, Forbidden, NotFound, ValidationError
from cloudvault.models.file import FileRecord, FileVersion, ROOT_FOLDER, VISIBILITY_PRIVATE, VISIBILITY_PUBLIC
from cloudvault.schemas.file import FileRecordCreate
from cloudvault.services import access, quota, versioning
from cloudvault.storage.object_store import ObjectStore
from cloudvault.utils.file_utils import guess_mime_type, is_filename_valid

logger = logging.getLogger(__name__)


def discard_objects(store: ObjectStore, keys: Iterable[str]) -> int:
    """Best-effort physical delete; returns how many keys failed."""
    failed = 0
    for key in keys:
        try:
            store.delete(key)
        except CloudVaultError as e:
            failed += 1
            logger.error("Failed to delete stored object %s, leaving it orphaned: %s", key, e.message)
    return failed


def validate_payload(filename: str, content: bytes) -> None:
    if not filename:
        raise ValidationError("No file provided")
    if not is_filename_valid(filename):
        raise ValidationError(f'Filename "{filename}" contains illegal characters: < > : " / \\ | ? *')
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(f"File size exceeds maximum allowed size of {settings.MAX_UPLOAD_SIZE} bytes")


def get_file(db: Session, *, file_id: str) -> FileRecord:
    file_record = crud.file.get(db, file_id)
    if not file_record:
        raise NotFound("File not found")
    return file_record


def upload_file(
    db: Session,
    store: ObjectStore,
    *,
    owner_id: str,
    filename: str,
    content: bytes,
    content_type: Optional[str] = None,
    folder_id: str = ROOT_FOLDER,
    is_public: bool = False,
) -> FileRecord:
    validate_payload(filename, content)
    folder_id = folder_id or ROOT_FOLDER
    if folder_id != ROOT_FOLDER:
        folder = crud.folder.get(db, folder_id)
        if not folder:
            raise NotFound("Folder not found")
        if folder.owner_id != owner_id:
            raise Forbidden("Folder belongs to another user")

    size = len(content)
    quota.check_quota(db, owner_id=owner_id, additional_bytes=size)

    mime_type = guess_mime_type(filename, content_type)
    file_id = uuid.uuid4().hex
    storage_key = versioning.derive_storage_key(owner_id, file_id, 1, filename)
    store.put(storage_key, content, mime_type)

    obj_in = FileRecordCreate(
        id=file_id,
        owner_id=owner_id,
        display_name=filename,
        mime_type=mime_type,
        folder_id=folder_id,
        visibility=VISIBILITY_PUBLIC if is_public else VISIBILITY_PRIVATE,
        size=size,
    )
    try:
        file_record = crud.file.create_with_version(db, obj_in=obj_in, storage_key=storage_key)
    except (CloudVaultError, SQLAlchemyError):
        # The key is unique to this request, so nobody else references it
        discard_objects(store, [storage_key])
        raise

    quota.record_usage(db, owner_id=owner_id, admitted_bytes=size)
    logger.info("Uploaded %s as file %s v1 (%d bytes)", filename, file_id, size)
    return file_record


def replace_version(
    db: Session,
    store: ObjectStore,
    *,
    file_id: str,
    requester_id: str,
    filename: str,
    content: bytes,
    content_type: Optional[str] = None,
) -> Tuple[FileRecord, Optional[int]]:
    """
    Store ``content`` as the next version of ``file_id``.

    The version number is claimed with a conditional metadata write before any
    bytes are stored, so two racing uploads can never share a version number
    or a storage key. Returns the updated record and the evicted version
    number, if any.
    """
    file_record = get_file(db, file_id=file_id)
    access.require_write(file_record, requester_id)
    validate_payload(filename, content)

    size = len(content)
    increase = quota.replacement_increase(file_record.size, size)
    if increase > 0:
        quota.check_quota(db, owner_id=file_record.owner_id, additional_bytes=increase)

    mime_type = guess_mime_type(filename, content_type)
    expected_version = file_record.current_version
    storage_key = versioning.derive_storage_key(file_record.owner_id, file_record.id, expected_version + 1, filename)
    result = versioning.append_version(file_record, size, storage_key)
    evicted = result.evicted
    previous = {
        "size": file_record.size,
        "display_name": file_record.display_name,
        "mime_type": file_record.mime_type,
    }
    evicted_snapshot = None
    if evicted is not None:
        evicted_snapshot = versioning.VersionSnapshot(
            version_number=evicted.version_number,
            storage_key=evicted.storage_key,
            byte_size=evicted.byte_size,
            created_at=evicted.created_at,
        )

    file_record = crud.file.commit_version(
        db,
        db_obj=file_record,
        expected_version=expected_version,
        new_version=FileVersion(
            version_number=result.new_version.version_number,
            storage_key=storage_key,
            byte_size=size,
        ),
        evicted_number=evicted_snapshot.version_number if evicted_snapshot else None,
        display_name=filename,
        mime_type=mime_type,
    )

    try:
        store.put(storage_key, content, mime_type)
    except CloudVaultError:
        logger.error("Storing v%d of %s failed, reverting metadata", result.new_version.version_number, file_id)
        crud.file.revert_version(
            db,
            file_id=file_id,
            failed_version=result.new_version.version_number,
            previous_version=expected_version,
            previous=previous,
            restore=evicted_snapshot,
        )
        raise

    if evicted_snapshot is not None:
        discard_objects(store, [evicted_snapshot.storage_key])
        logger.info("File %s: version %d evicted", file_id, evicted_snapshot.version_number)

    quota.record_usage(db, owner_id=file_record.owner_id, admitted_bytes=increase)
    return file_record, evicted_snapshot.version_number if evicted_snapshot else None


def download(db: Session, store: ObjectStore, *, file_id: str, requester_id: str, version: Optional[int] = None) -> dict:
    file_record = get_file(db, file_id=file_id)
    access.require_read(file_record, requester_id)
    resolved = versioning.resolve_version(file_record, version)
    ttl = settings.PRESIGNED_URL_EXPIRE_SECONDS
    return {
        "download_url": store.presign(resolved.storage_key, ttl),
        "filename": file_record.display_name,
        "version": resolved.version_number,
        "size": resolved.byte_size,
        "expires_in": ttl,
    }


def list_versions(db: Session, *, file_id: str, requester_id: str) -> dict:
    file_record = get_file(db, file_id=file_id)
    access.require_read(file_record, requester_id)
    return {
        "file_id": file_record.id,
        "filename": file_record.display_name,
        "current_version": file_record.current_version,
        "versions": versioning.format_versions(file_record),
    }


def delete_file(db: Session, store: ObjectStore, *, file_id: str, requester_id: str) -> int:
    file_record = get_file(db, file_id=file_id)
    access.require_write(file_record, requester_id)
    keys = [v.storage_key for v in file_record.versions]
    crud.file.remove(db, id=file_id)
    discard_objects(store, keys)
    logger.info("Deleted file %s and %d stored versions", file_id, len(keys))
    return len(keys)


def set_visibility(db: Session, *, file_id: str, requester_id: str, visibility: str) -> FileRecord:
    file_record = get_file(db, file_id=file_id)
    access.require_write(file_record, requester_id)
    return crud.file.set_visibility(db, db_obj=file_record, visibility=visibility)


def list_files(
    db: Session, *, owner_id: str, folder_id: Optional[str] = None, search: Optional[str] = None,
    skip: int = 0, limit: int = 100
) -> List[FileRecord]:
    return crud.file.get_by_owner(db, owner_id=owner_id, folder_id=folder_id, search=search, skip=skip, limit=limit)
