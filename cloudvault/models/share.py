from sqlalchemy import Column, String, BigInteger, ForeignKey
from cloudvault.db.base_class import Base


class Share(Base):
    __tablename__ = "share"

    public_id = Column(String(64), primary_key=True, index=True)
    # No FK to file_record: shares outlive the file and must fail cleanly on redeem
    file_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(64), ForeignKey("directory_user.id"), nullable=False, index=True)
    created_at = Column(BigInteger, nullable=False)  # epoch millis
