from datetime import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from ..models.user import User
from ..services.identity import IdentityProvider
from ..utils.dependencies import get_current_user, get_identity, get_optional_user
from ..utils.error_handlers import PersistenceError, UnauthorizedError, get_error_message
from ..utils.validation import validate_role, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


def _user_to_public(user: User) -> dict:
    def iso(value):
        return value.isoformat() if isinstance(value, datetime) else value

    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "created_at": iso(user.created_at),
        "updated_at": iso(user.updated_at),
    }


class RoleRequest(BaseModel):
    role: str | None = None


class UserUpsertRequest(BaseModel):
    email: str | None = None
    role: str | None = None


@router.post("/user/role")
def set_role(
    payload: RoleRequest,
    user: dict | None = Depends(get_optional_user),
    identity: IdentityProvider = Depends(get_identity),
):
    """Record the caller's role once; later attempts get 409."""
    if not user:
        raise UnauthorizedError(get_error_message("unauthorized_signin"))

    role = validate_role(payload.role)
    try:
        identity.set_role(user["sub"], role)
    except SQLAlchemyError as e:
        logger.error("Error saving user role for %s: %s", user["sub"], e)
        raise PersistenceError("An error occurred. Please try again.") from e

    return {"role": role, "message": "Role saved successfully"}


@router.post("/users")
def upsert_user(
    payload: UserUpsertRequest,
    user=Depends(get_current_user),
    identity: IdentityProvider = Depends(get_identity),
):
    if not payload.email or not payload.role:
        raise HTTPException(status_code=400, detail="Email and role are required")
    email = validate_string_field(payload.email, "Email", max_length=255)
    role = validate_role(payload.role)

    try:
        profile, created = identity.users.upsert(user["sub"], email=email, role=role)
    except SQLAlchemyError as e:
        logger.error("Failed to save user %s: %s", user["sub"], e)
        raise PersistenceError("Failed to save user") from e

    logger.info("User %s user_id=%s role=%s", "created" if created else "updated", user["sub"], role)
    return {"success": True, "user": _user_to_public(profile)}


@router.get("/users/check")
def check_user(
    user=Depends(get_current_user),
    identity: IdentityProvider = Depends(get_identity),
):
    role = identity.get_role(user["sub"])
    if not role:
        return {"exists": False}
    return {"exists": True, "role": role}


_DASHBOARDS = {
    "candidate": "/dashboard/candidate",
    "recruiter": "/dashboard/recruiter",
}


@router.get("/auth/callback")
def auth_callback(
    user: dict | None = Depends(get_optional_user),
    identity: IdentityProvider = Depends(get_identity),
):
    """Post sign-in landing: send the user to onboarding or their dashboard."""
    if not user:
        return RedirectResponse("/signin")
    try:
        role = identity.get_role(user["sub"])
    except SQLAlchemyError as e:
        logger.error("Auth callback: role lookup failed for %s: %s", user["sub"], e)
        return RedirectResponse("/onboarding")
    return RedirectResponse(_DASHBOARDS.get(role or "", "/onboarding"))
