import time

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..config import (
    PUBLIC_BASE_URL,
    RESUME_BUCKET,
    SCORING_API_KEY,
    SCORING_BACKEND_URL,
    UPLOAD_DIR,
)
from ..database import get_db
from ..services.identity import IdentityProvider
from ..services.scoring_client import ScoringClient, ScoringClientError
from ..services.storage import LocalBlobStorage
from .error_handlers import UnauthorizedError, get_error_message

_bearer = HTTPBearer(auto_error=False)


def get_identity(db: Session = Depends(get_db)) -> IdentityProvider:
    return IdentityProvider(db)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    identity: IdentityProvider = Depends(get_identity),
) -> dict | None:
    token = credentials.credentials if credentials else None
    user_id = identity.current_user_id(token)
    return {"sub": user_id} if user_id else None


def get_current_user(user: dict | None = Depends(get_optional_user)) -> dict:
    if not user:
        raise UnauthorizedError(get_error_message("unauthorized"))
    return user


def get_storage() -> LocalBlobStorage:
    return LocalBlobStorage(UPLOAD_DIR, RESUME_BUCKET, PUBLIC_BASE_URL)


def get_scoring_client() -> ScoringClient | None:
    """None when the scoring backend is not configured."""
    try:
        return ScoringClient(base_url=SCORING_BACKEND_URL, api_key=SCORING_API_KEY)
    except ScoringClientError:
        return None


def get_retry_sleep():
    return time.sleep
