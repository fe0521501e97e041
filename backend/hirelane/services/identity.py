import logging

from sqlalchemy.orm import Session

from ..repositories.users import UserRepository
from ..utils.jwt import decode_access_token

logger = logging.getLogger(__name__)


class IdentityProvider:
    """
    Narrow view of the hosted identity provider.

    - current_user_id: verifies the bearer token and returns its subject.
    - get_role / set_role: role metadata, stored on the user profile row and
      write-once (set_role raises RoleAlreadySetError on a second attempt).
    """

    def __init__(self, db: Session, *, secret: str | None = None):
        self.users = UserRepository(db)
        self._secret = secret

    def current_user_id(self, token: str | None) -> str | None:
        if not token:
            return None
        claims = decode_access_token(token, secret=self._secret)
        if not claims:
            logger.info("Rejected bearer token (invalid or expired)")
            return None
        sub = claims.get("sub")
        return str(sub) if sub else None

    def get_role(self, user_id: str) -> str | None:
        return self.users.get_role(user_id)

    def set_role(self, user_id: str, role: str, *, email: str | None = None):
        user = self.users.set_role(user_id, role, email=email)
        logger.info("Role stored user_id=%s role=%s", user_id, role)
        return user
