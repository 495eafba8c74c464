"""
Folder hierarchy as a directed forest of parent pointers.

The pure helpers at the top work on a ``{folder_id: parent_id}`` snapshot and
never touch the database; the operations below load the snapshot through the
metadata store, run the helpers, then write.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cloudvault import crud
from cloudvault.core.errors import Forbidden, NotFound, ValidationError
from cloudvault.models.file import FileRecord, ROOT_FOLDER
from cloudvault.models.folder import Folder
from cloudvault.services import access
from cloudvault.services.files import discard_objects
from cloudvault.storage.object_store import ObjectStore
from cloudvault.utils.file_utils import is_filename_valid

logger = logging.getLogger(__name__)


def build_parent_map(links: Iterable[Sequence]) -> Dict[str, str]:
    """``{folder_id: parent_id}`` from ``(folder_id, parent_id, ...)`` rows."""
    return {link[0]: link[1] for link in links}


def is_descendant(parents: Mapping[str, str], ancestor_id: str, node_id: str) -> bool:
    """
    True if ``ancestor_id`` appears on ``node_id``'s parent chain.

    The walk is bounded by the number of folders and guarded by a visited
    set. A chain that neither reaches root nor a dangling parent is corrupt,
    and is reported as a descendant so callers refuse to build on it.
    """
    visited: Set[str] = set()
    current = parents.get(node_id)
    for _ in range(len(parents) + 1):
        if current is None or current == ROOT_FOLDER:
            return False
        if current == ancestor_id:
            return True
        if current in visited:
            break
        visited.add(current)
        current = parents.get(current)
    logger.error("Folder chain above %s does not terminate at root", node_id)
    return True


def collect_descendants(parents: Mapping[str, str], folder_id: str) -> Set[str]:
    """All folders below ``folder_id``, found by repeated expansion over parent links."""
    children: Dict[str, List[str]] = defaultdict(list)
    for child_id, parent_id in parents.items():
        children[parent_id].append(child_id)

    found: Set[str] = set()
    frontier = [folder_id]
    while frontier:
        next_frontier = []
        for current in frontier:
            for child_id in children.get(current, ()):
                if child_id != folder_id and child_id not in found:
                    found.add(child_id)
                    next_frontier.append(child_id)
        frontier = next_frontier
    return found


def check_move(parents: Mapping[str, str], folder_id: str, target_id: str) -> None:
    if folder_id == target_id:
        raise ValidationError("Cannot move a folder into itself")
    if target_id != ROOT_FOLDER and is_descendant(parents, folder_id, target_id):
        raise ValidationError("Cannot move a folder into one of its own subfolders")


@dataclass
class DeleteSummary:
    deleted_folders: int = 0
    deleted_files: int = 0
    failed: int = 0


def get_owned_folder(db: Session, *, folder_id: str, owner_id: str) -> Folder:
    folder = crud.folder.get(db, folder_id)
    if not folder:
        raise NotFound("Folder not found")
    if folder.owner_id != owner_id:
        raise Forbidden("Access denied")
    return folder


def _require_target(db: Session, *, target_id: str, owner_id: str) -> Optional[Folder]:
    if target_id == ROOT_FOLDER:
        return None
    target = crud.folder.get(db, target_id)
    if not target:
        raise NotFound("Target folder not found")
    if target.owner_id != owner_id:
        raise Forbidden("Target folder belongs to another user")
    return target


def create_folder(
    db: Session, *, owner_id: str, name: str, parent_id: str = ROOT_FOLDER, folder_id: Optional[str] = None
) -> Folder:
    if not is_filename_valid(name):
        raise ValidationError('Folder name contains illegal characters: < > : " / \\ | ? *')
    if folder_id == ROOT_FOLDER:
        raise ValidationError(f'"{ROOT_FOLDER}" is reserved')
    _require_target(db, target_id=parent_id, owner_id=owner_id)
    return crud.folder.create_with_owner(
        db, id=folder_id or uuid.uuid4().hex, owner_id=owner_id, name=name, parent_id=parent_id
    )


def list_children(
    db: Session, *, folder_id: str, owner_id: str, skip: int = 0, limit: int = 100
) -> Tuple[List[Folder], List[FileRecord]]:
    """One page of subfolders and one page of files directly inside ``folder_id``."""
    if folder_id != ROOT_FOLDER:
        get_owned_folder(db, folder_id=folder_id, owner_id=owner_id)
    folders = crud.folder.get_by_owner(db, owner_id=owner_id, parent_id=folder_id, skip=skip, limit=limit)
    files = crud.file.get_by_owner(db, owner_id=owner_id, folder_id=folder_id, skip=skip, limit=limit)
    return folders, files


def move_folder(db: Session, *, folder_id: str, target_id: str, owner_id: str) -> Folder:
    folder = get_owned_folder(db, folder_id=folder_id, owner_id=owner_id)
    if folder_id == target_id:
        raise ValidationError("Cannot move a folder into itself")
    target = _require_target(db, target_id=target_id, owner_id=owner_id)

    parents = build_parent_map(crud.folder.get_parent_links(db, owner_id=owner_id))
    check_move(parents, folder_id, target_id)

    moved = crud.folder.move_conditional(
        db,
        folder_id=folder.id,
        folder_row_version=folder.row_version,
        target_id=target_id,
        target_row_version=target.row_version if target is not None else None,
    )
    logger.info("Moved folder %s under %s", folder_id, target_id)
    return moved


def delete_folder_recursive(db: Session, store: ObjectStore, *, folder_id: str, owner_id: str) -> DeleteSummary:
    """
    Delete ``folder_id``, every folder below it and every file they contain.

    There is no transaction across items. A file that fails to delete is
    logged and skipped, and the folders on its path are kept so it stays
    reachable. Folders are deleted deepest first, each only if its
    ``row_version`` still matches the snapshot taken at the start; a folder
    that changed meanwhile (something moved or uploaded into it) is kept
    together with its ancestors. The summary counts what was removed and
    what was not.
    """
    get_owned_folder(db, folder_id=folder_id, owner_id=owner_id)
    links = crud.folder.get_parent_links(db, owner_id=owner_id)
    parents = build_parent_map(links)
    row_versions = {link[0]: link[2] for link in links}
    doomed = collect_descendants(parents, folder_id) | {folder_id}
    summary = DeleteSummary()
    kept: Set[str] = set()

    def keep_chain(start: str) -> None:
        # Keep every folder between ``start`` and the deleted root
        current = start
        while current in doomed and current not in kept:
            kept.add(current)
            if current == folder_id:
                break
            current = parents.get(current)

    def depth(node: str) -> int:
        steps = 0
        while node != folder_id and node in doomed and steps <= len(doomed):
            node = parents.get(node)
            steps += 1
        return steps

    for file_record in crud.file.get_in_folders(db, owner_id=owner_id, folder_ids=doomed):
        file_id = file_record.id
        folder_of_file = file_record.folder_id
        keys = [v.storage_key for v in file_record.versions]
        try:
            crud.file.remove(db, id=file_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Cascade delete of file %s failed: %s", file_id, e)
            summary.failed += 1
            keep_chain(folder_of_file)
            continue
        discard_objects(store, keys)
        summary.deleted_files += 1

    for doomed_id in sorted(doomed, key=depth, reverse=True):
        if doomed_id in kept:
            summary.failed += 1
            continue
        try:
            removed = crud.folder.remove_conditional(db, folder_id=doomed_id, row_version=row_versions[doomed_id])
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Cascade delete of folder %s failed: %s", doomed_id, e)
            removed = None
        if removed:
            summary.deleted_folders += 1
            continue
        if removed is False:
            logger.warning("Folder %s changed during cascade delete, keeping it", doomed_id)
        summary.failed += 1
        keep_chain(doomed_id)

    logger.info(
        "Deleted folder %s: %d folders, %d files, %d failed",
        folder_id, summary.deleted_folders, summary.deleted_files, summary.failed
    )
    return summary


def move_file(db: Session, *, file_id: str, target_folder_id: str, owner_id: str) -> FileRecord:
    file_record = crud.file.get(db, file_id)
    if not file_record:
        raise NotFound("File not found")
    access.require_write(file_record, owner_id)
    _require_target(db, target_id=target_folder_id, owner_id=owner_id)
    # Only the pointer changes; stored objects keep their keys
    return crud.file.move(db, db_obj=file_record, folder_id=target_folder_id)
