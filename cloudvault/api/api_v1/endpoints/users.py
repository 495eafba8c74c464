from typing import Any

from fastapi import APIRouter, Depends

from cloudvault import models, schemas
from cloudvault.api import deps

router = APIRouter()

@router.get("/me", response_model=schemas.UserStorage)
def read_user_me(
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Get current user with storage usage.
    """
    return {
        "id": current_user.id,
        "email": current_user.email,
        "quota_bytes": current_user.quota_bytes,
        "used_bytes": current_user.used_bytes,
        "available_bytes": max(current_user.quota_bytes - current_user.used_bytes, 0),
    }
