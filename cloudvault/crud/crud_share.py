import time
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from cloudvault.core.errors import Conflict
from cloudvault.crud.base import CRUDBase
from cloudvault.models.share import Share
from cloudvault.schemas.share import ShareCreate, ShareBase


class CRUDShare(CRUDBase[Share, ShareCreate, ShareBase]):
    def create_with_owner(
        self, db: Session, *, public_id: str, file_id: str, owner_id: str
    ) -> Share:
        db_obj = Share(
            public_id=public_id,
            file_id=file_id,
            owner_id=owner_id,
            created_at=int(time.time() * 1000)
        )
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Share id collision, retry")
        db.refresh(db_obj)
        return db_obj

    def get_by_public_id(self, db: Session, *, public_id: str) -> Optional[Share]:
        return db.query(Share).filter(Share.public_id == public_id).first()

share = CRUDShare(Share)
