import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError

from cloudvault.core import security
from cloudvault.core.errors import Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None


class IdentityClient:
    """
    Resolves a bearer token into the requester identity.

    Only verification lives here; tokens are minted by the identity provider
    with the shared ``SECRET_KEY``.
    """

    def verify(self, bearer_token: str) -> Identity:
        if not bearer_token:
            raise Unauthorized("Access token required")
        try:
            payload = security.decode_token(bearer_token)
        except JWTError as e:
            logger.info("Rejected bearer token: %s", e)
            raise Unauthorized("Invalid or expired token")
        user_id = payload.get("sub")
        if not user_id:
            raise Unauthorized("Invalid or expired token")
        return Identity(user_id=str(user_id), email=payload.get("email"))


identity_client = IdentityClient()
