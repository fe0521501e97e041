"""
Centralized error types and user-friendly error messages.
"""
import logging
from typing import Any

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Validation error."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: Any = None):
        super().__init__(message, status_code=404, details=details)


class UnauthorizedError(AppError):
    """No authenticated identity."""
    def __init__(self, message: str = "Unauthorized", details: Any = None):
        super().__init__(message, status_code=401, details=details)


class ForbiddenError(AppError):
    """Identity present but lacks permission."""
    def __init__(self, message: str = "Forbidden", details: Any = None):
        super().__init__(message, status_code=403, details=details)


class ConflictError(AppError):
    """Conflicts with existing state."""
    def __init__(self, message: str, status_code: int = 409, details: Any = None):
        super().__init__(message, status_code=status_code, details=details)


class DuplicateApplicationError(ConflictError):
    """Second application for the same job; answered as a plain 400."""
    def __init__(self, message: str = "You have already applied for this job", details: Any = None):
        super().__init__(message, status_code=400, details=details)


class RoleAlreadySetError(ConflictError):
    def __init__(self, message: str = "Role cannot be changed after initial selection.", details: Any = None):
        super().__init__(message, details=details)


class UploadFailedError(AppError):
    """Blob storage rejected the resume."""
    def __init__(self, message: str = "Failed to upload resume", details: Any = None):
        super().__init__(message, status_code=500, details=details)


class PersistenceError(AppError):
    """Database error."""
    def __init__(self, message: str = "Database operation failed", details: Any = None):
        super().__init__(message, status_code=500, details=details)


class UpstreamServiceError(AppError):
    """A downstream HTTP service answered with an error."""
    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        super().__init__(message, status_code=status_code, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Identity
    "unauthorized": "Unauthorized",
    "unauthorized_signin": "Unauthorized. Please sign in to continue.",
    "forbidden": "Forbidden",
    "user_not_found": "User not found",
    "invalid_role": 'Invalid role selected. Role must be either "candidate" or "recruiter".',
    "role_immutable": "Role cannot be changed after initial selection.",

    # Jobs
    "job_not_found": "Job not found",
    "job_id_required": "Job ID is required",
    "job_id_invalid": "Valid Job ID is required",
    "job_fetch_failed": "Failed to fetch job data",
    "jobs_load_failed": "Failed to load jobs",

    # Applications
    "missing_fields": "Missing required fields",
    "already_applied": "You have already applied for this job",
    "application_not_found": "Application not found",
    "upload_failed": "Failed to upload resume",
    "application_save_failed": "Failed to save application",
    "application_update_failed": "Failed to update application",
    "applications_fetch_failed": "Failed to fetch applications",
    "check_failed": "Failed to check status",

    # Scoring
    "scoring_config_missing": "Server configuration error",
    "scoring_failed": "Failed to score applications",

    # General
    "server_error": "Internal server error",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def create_error_response(
    status_code: int,
    message: str,
    details: Any = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
    )


def register_exception_handlers(app) -> None:  # noqa: ANN001
    """Map every failure to a fixed status and a JSON {success, error, details?} body."""
    from fastapi.exceptions import RequestValidationError
    from sqlalchemy.exc import SQLAlchemyError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppError)
    async def app_error_handler(request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc: StarletteHTTPException):
        return create_error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        logger.warning("Request validation failed on %s: %s", request.url.path, exc.errors())
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return create_error_response(400, get_error_message("validation_error"), details)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request, exc: SQLAlchemyError):
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))
