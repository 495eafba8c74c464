from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cloudvault import crud, models
from cloudvault.core.errors import Unauthorized
from cloudvault.core.identity import identity_client
from cloudvault.db.session import SessionLocal
from cloudvault.storage.object_store import ObjectStore, get_object_store

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store() -> ObjectStore:
    return get_object_store()


def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> models.User:
    if credentials is None:
        raise Unauthorized("Access token required")
    identity = identity_client.verify(credentials.credentials)
    # The user directory entry carries quota; provisioned on first sight
    return crud.user.get_or_create(db, id=identity.user_id, email=identity.email)
