from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from cloudvault.core.config import settings
from cloudvault.crud.base import CRUDBase
from cloudvault.models.user import User
from cloudvault.schemas.user import UserCreate, UserUpdate


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    def get_or_create(self, db: Session, *, id: str, email: Optional[str] = None) -> User:
        user = self.get(db, id)
        if user:
            return user
        db_obj = User(
            id=id,
            email=email,
            quota_bytes=settings.DEFAULT_QUOTA_BYTES,
            used_bytes=0
        )
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            # Provisioned by a concurrent request
            db.rollback()
            return self.get(db, id)
        db.refresh(db_obj)
        return db_obj

    def increment_used_bytes(self, db: Session, *, user_id: str, size_delta: int) -> Optional[User]:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(used_bytes=User.used_bytes + size_delta)
        )
        db.execute(stmt)
        db.commit()
        return self.get(db, user_id)

user = CRUDUser(User)
