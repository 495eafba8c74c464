from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from cloudvault import models, schemas
from cloudvault.api import deps
from cloudvault.services import sharing
from cloudvault.storage.object_store import ObjectStore

router = APIRouter()


@router.post("", response_model=schemas.ShareLink, status_code=201)
def create_share(
    *,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
    share_in: schemas.ShareCreate,
) -> Any:
    """
    Create a public link pinned to the file's current version.
    """
    return sharing.issue(db, file_id=share_in.file_id, requester_id=current_user.id)


@router.get("/{public_id}")
def redeem_share(
    public_id: str,
    token: Optional[str] = None,
    db: Session = Depends(deps.get_db),
    store: ObjectStore = Depends(deps.get_store),
) -> Any:
    """
    Public: redirect to a short-lived download URL for the shared version.
    """
    url = sharing.redeem(db, store, public_id=public_id, token=token)
    return RedirectResponse(url=url, status_code=302)
