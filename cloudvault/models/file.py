from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from cloudvault.db.base_class import Base
from datetime import datetime

ROOT_FOLDER = "root"

VISIBILITY_PRIVATE = "private"
VISIBILITY_PUBLIC = "public"


class FileRecord(Base):
    __tablename__ = "file_record"

    id = Column(String(64), primary_key=True, index=True)
    owner_id = Column(String(64), ForeignKey("directory_user.id"), nullable=False, index=True)
    display_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False, default="application/octet-stream")
    # Folder id, or the "root" sentinel which is never stored as a folder row
    folder_id = Column(String(64), default=ROOT_FOLDER, nullable=False, index=True)
    visibility = Column(String(16), default=VISIBILITY_PRIVATE, nullable=False)
    current_version = Column(Integer, nullable=False, default=1)
    size = Column(BigInteger, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    versions = relationship(
        "FileVersion",
        order_by="FileVersion.version_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class FileVersion(Base):
    __tablename__ = "file_version"

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(String(64), ForeignKey("file_record.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    storage_key = Column(String(1024), nullable=False)
    byte_size = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("file_id", "version_number", name="uq_file_version_number"),
    )
