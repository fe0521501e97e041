import logging

from fastapi import Depends

from ..services.identity import IdentityProvider
from .dependencies import get_current_user, get_identity
from .error_handlers import ForbiddenError, NotFoundError, get_error_message

logger = logging.getLogger(__name__)


def _role_required(required_role: str, denied_message: str):
    def check_role(
        user=Depends(get_current_user),
        identity: IdentityProvider = Depends(get_identity),
    ):
        profile = identity.users.get(user["sub"])
        if profile is None:
            logger.error("No user profile for identity %s", user["sub"])
            raise NotFoundError(get_error_message("user_not_found"))
        if profile.role != required_role:
            raise ForbiddenError(denied_message)
        return {**user, "role": profile.role}
    return check_role


recruiter_only = _role_required("recruiter", "Only recruiters can access this resource")
