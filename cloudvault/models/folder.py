from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from cloudvault.db.base_class import Base
from datetime import datetime


class Folder(Base):
    __tablename__ = "folder"

    id = Column(String(64), primary_key=True, index=True)
    owner_id = Column(String(64), ForeignKey("directory_user.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(String(64), default="root", nullable=False, index=True)
    # Bumped on every structural write; used as an etag precondition
    row_version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
