from sqlalchemy import Column, String, BigInteger
from cloudvault.db.base_class import Base

class User(Base):
    __tablename__ = "directory_user"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=True)
    quota_bytes = Column(BigInteger, default=5368709120, nullable=False)
    used_bytes = Column(BigInteger, default=0, nullable=False)
