import logging

from sqlalchemy.orm import Session

from cloudvault import crud
from cloudvault.core.errors import QuotaExceeded
from cloudvault.utils.file_utils import format_bytes

logger = logging.getLogger(__name__)


def ensure_capacity(quota_bytes: int, used_bytes: int, additional_bytes: int) -> int:
    """Raise QuotaExceeded unless ``additional_bytes`` fits; returns what is left."""
    available = quota_bytes - used_bytes
    if available < additional_bytes:
        raise QuotaExceeded(
            f"Insufficient storage. Available: {format_bytes(max(available, 0))}, "
            f"Required: {format_bytes(additional_bytes)}"
        )
    return available


def replacement_increase(previous_size: int, new_size: int) -> int:
    # A shrink is not credited back.
    return max(new_size - previous_size, 0)


def check_quota(db: Session, *, owner_id: str, additional_bytes: int) -> int:
    user = crud.user.get_or_create(db, id=owner_id)
    return ensure_capacity(user.quota_bytes, user.used_bytes, additional_bytes)


def record_usage(db: Session, *, owner_id: str, admitted_bytes: int) -> None:
    """
    Lifetime-write accounting: usage only ever grows, deletes and evictions
    never give bytes back.
    """
    if admitted_bytes <= 0:
        return
    crud.user.increment_used_bytes(db, user_id=owner_id, size_delta=admitted_bytes)
    logger.debug("Owner %s charged %d bytes", owner_id, admitted_bytes)
