"""
Public links as signed, version-pinned capabilities.

A link is two things that must both check out at redemption: a persisted
share index entry (``public_id`` -> file, owner) and a signed token that pins
the file version, filename and owner at the time of issue. The storage key is
rebuilt from the token, so a link keeps serving the version it was minted for
even after the file moves on. Tokens expire and cannot be revoked early.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError
from sqlalchemy.orm import Session

from cloudvault import crud
from cloudvault.core import security
from cloudvault.core.config import settings
from cloudvault.core.errors import NotFound
from cloudvault.services import access, versioning
from cloudvault.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

SHARE_TOKEN_TYPE = "share"

UNAVAILABLE_MESSAGE = "Share link not found or expired"


def issue(db: Session, *, file_id: str, requester_id: str) -> dict:
    file_record = crud.file.get(db, file_id)
    if not file_record:
        raise NotFound("File not found")
    access.require_write(file_record, requester_id)

    public_id = secrets.token_urlsafe(16)
    share = crud.share.create_with_owner(db, public_id=public_id, file_id=file_record.id, owner_id=file_record.owner_id)

    lifetime = timedelta(minutes=settings.SHARE_TOKEN_EXPIRE_MINUTES)
    token = security.create_token(
        {
            "typ": SHARE_TOKEN_TYPE,
            "pid": share.public_id,
            "fid": file_record.id,
            "ver": file_record.current_version,
            "fn": file_record.display_name,
            "own": file_record.owner_id,
        },
        lifetime,
    )
    url = f"{settings.PUBLIC_BASE_URL}{settings.API_V1_STR}/shares/{share.public_id}?token={token}"
    logger.info("Issued share %s for file %s v%d", share.public_id, file_record.id, file_record.current_version)
    return {
        "public_id": share.public_id,
        "url": url,
        "version": file_record.current_version,
        "expires_at": datetime.now(timezone.utc) + lifetime,
    }


def _unavailable(public_id: str, reason: str) -> NotFound:
    # Callers see one error whatever failed; only the log says which check it was
    logger.info("Share %s refused: %s", public_id, reason)
    return NotFound(UNAVAILABLE_MESSAGE)


def redeem(db: Session, store: ObjectStore, *, public_id: str, token: str) -> str:
    """Presigned URL for the version pinned in ``token``."""
    if not token:
        raise _unavailable(public_id, "missing token")
    try:
        claims = security.decode_token(token)
    except JWTError as e:
        raise _unavailable(public_id, f"bad token ({e})")
    if claims.get("typ") != SHARE_TOKEN_TYPE or claims.get("pid") != public_id:
        raise _unavailable(public_id, "token not issued for this link")

    share = crud.share.get_by_public_id(db, public_id=public_id)
    if share is None:
        raise _unavailable(public_id, "unknown public id")
    if share.file_id != claims.get("fid") or share.owner_id != claims.get("own"):
        raise _unavailable(public_id, "token does not match share index")

    try:
        version_number = int(claims["ver"])
        storage_key = versioning.derive_storage_key(claims["own"], claims["fid"], version_number, claims["fn"])
    except (KeyError, TypeError, ValueError):
        raise _unavailable(public_id, "incomplete token claims")

    # Never hand out bytes for a deleted file or an evicted version
    file_record = crud.file.get(db, claims["fid"])
    if file_record is None:
        raise _unavailable(public_id, "file deleted")
    pinned = versioning.find_version(file_record.versions, version_number)
    if pinned is None or pinned.storage_key != storage_key:
        raise _unavailable(public_id, f"version {version_number} no longer retained")

    return store.presign(storage_key, settings.PRESIGNED_URL_EXPIRE_SECONDS)
