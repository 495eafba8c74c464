"""
Version lifecycle: storage keys, bounded history and version resolution.

Everything here is a pure transform over the file's version list. Callers do
the object-store and metadata writes, and physically delete whatever
``append_version`` reports as evicted.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence

from cloudvault.core.config import settings
from cloudvault.core.errors import VersionNotFound


@dataclass
class VersionSnapshot:
    version_number: int
    storage_key: str
    byte_size: int
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class AppendResult:
    new_version: VersionSnapshot
    retained: List[Any]
    evicted: Optional[Any] = None


def derive_storage_key(owner_id: str, file_id: str, version_number: int, filename: str) -> str:
    return f"{owner_id}/{file_id}/v{version_number}/{filename}"


def append_version(file, new_size: int, new_key: str, max_versions: Optional[int] = None) -> AppendResult:
    """
    Append the next version to ``file.versions`` (oldest first).

    The new version number is ``file.current_version + 1``. When the history
    grows past ``max_versions`` the entry at index 0 is dropped, strictly by
    insertion order, and returned as ``evicted``. ``file`` is not mutated.
    """
    if max_versions is None:
        max_versions = settings.MAX_VERSIONS
    new_version = VersionSnapshot(
        version_number=file.current_version + 1,
        storage_key=new_key,
        byte_size=new_size,
    )
    versions = list(file.versions)
    versions.append(new_version)

    evicted = None
    if len(versions) > max_versions:
        evicted = versions.pop(0)

    return AppendResult(new_version=new_version, retained=versions, evicted=evicted)


def find_version(versions: Sequence[Any], version_number: int) -> Optional[Any]:
    for version in versions:
        if version.version_number == version_number:
            return version
    return None


def resolve_version(file, requested_version: Optional[int] = None):
    """Current version when ``requested_version`` is None, else that exact one."""
    wanted = file.current_version if requested_version is None else requested_version
    version = find_version(file.versions, wanted)
    if version is None:
        raise VersionNotFound(f"Version {wanted} not found")
    return version


def format_versions(file) -> List[dict]:
    return [
        {
            "version": v.version_number,
            "size": v.byte_size,
            "created_at": v.created_at,
            "is_current": v.version_number == file.current_version,
        }
        for v in file.versions
    ]
