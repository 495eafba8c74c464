from datetime import datetime
from pydantic import BaseModel, Field

class ShareBase(BaseModel):
    file_id: str = Field(..., min_length=1, max_length=64)

class ShareCreate(ShareBase):
    pass

# Returned to the owner when a link is minted
class ShareLink(BaseModel):
    public_id: str
    url: str
    version: int
    expires_at: datetime
