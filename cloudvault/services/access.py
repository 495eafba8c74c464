from cloudvault.core.errors import Forbidden
from cloudvault.models.file import VISIBILITY_PUBLIC


def can_read(file, requester_id: str) -> bool:
    return requester_id == file.owner_id or file.visibility == VISIBILITY_PUBLIC


def can_write(file, requester_id: str) -> bool:
    return requester_id == file.owner_id


def require_read(file, requester_id: str) -> None:
    if not can_read(file, requester_id):
        raise Forbidden("Access denied")


def require_write(file, requester_id: str) -> None:
    if not can_write(file, requester_id):
        raise Forbidden("Access denied")
