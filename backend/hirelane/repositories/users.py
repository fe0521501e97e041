import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.user import User
from ..utils.error_handlers import RoleAlreadySetError

logger = logging.getLogger(__name__)


class UserRepository:
    """User profiles keyed by the identity provider's subject."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_role(self, user_id: str) -> str | None:
        user = self.get(user_id)
        return user.role if user else None

    def upsert(self, user_id: str, *, email: str, role: str) -> tuple[User, bool]:
        """Create or refresh a profile. Returns (user, created).

        The role is write-once: a profile that already has a different role
        raises RoleAlreadySetError and is left untouched.
        """
        user = self.get(user_id)
        if user is None:
            user = User(id=user_id, email=email, role=role)
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                # Lost a race with a concurrent first sign-in; fall through to update.
                self.db.rollback()
                user = self.get(user_id)
                if user is None:
                    raise
            else:
                self.db.refresh(user)
                return user, True

        if user.role and user.role != role:
            raise RoleAlreadySetError()

        user.email = email
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        return user, False

    def set_role(self, user_id: str, role: str, *, email: str | None = None) -> User:
        """Store the role only if none is stored yet (single conditional UPDATE)."""
        if self.get(user_id) is None:
            self.db.add(User(id=user_id, email=email, role=role))
            try:
                self.db.commit()
                return self.get(user_id)
            except IntegrityError:
                self.db.rollback()

        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.role.is_(None))
            .values(role=role)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise RoleAlreadySetError()
        self.db.commit()
        user = self.get(user_id)
        self.db.refresh(user)
        return user
