"""
Centralized error types and user-facing error messages.

Controllers raise AppError subclasses; the handlers registered in main.py turn
every error into a `{"message": ...}` body with the error's status code.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or invalid input."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnauthorizedError(AppError):
    """Missing, invalid or expired credentials."""
    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    """Wrong role or not the owner of the resource."""
    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message, status_code=403)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    """Duplicate value for a unique field."""
    def __init__(self, message: str = "This record already exists"):
        super().__init__(message, status_code=409)


class UpstreamError(AppError):
    """A downstream collaborator (upload relay, media host) failed."""
    def __init__(self, message: str = "Downstream service failed"):
        super().__init__(message, status_code=500)


ERROR_MESSAGES = {
    # Authentication
    "missing_register_fields": "Please provide all required fields: name, email, password, phoneNumber, role",
    "missing_login_fields": "Please provide both email and password",
    "email_exists": "User with this email already exists",
    "invalid_role": "Role must be either 'recruiter' or 'jobseeker'",
    "invalid_credentials": "Invalid credentials",
    "password_too_long": "Password must be 72 bytes or less",
    "reset_link_sent": "If that email exists, we have sent a reset link",
    "invalid_reset_token": "Invalid or expired token",
    "no_token": "Unauthorized: No token provided",
    "invalid_token": "Unauthorized: Invalid token",
    "token_user_missing": "Unauthorized: User associated with token not found",
    "auth_failed": "Authorization Failed: Please login again",
    "auth_required": "Authenticated user required",

    # Uploads
    "resume_required": "Resume file is required for jobseekers",
    "buffer_failed": "Failed to generate buffer",
    "upload_failed": "Failed to upload file",

    # Companies / jobs
    "company_not_found": "Company not found",
    "job_not_found": "Job not found",
    "missing_job_fields": "Please provide all required fields",

    # Applications
    "application_not_found": "Application not found",
    "already_applied": "You have already applied to this job",

    # General
    "user_not_found": "User not found",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-facing error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def _message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _message_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException):
    return _message_response(exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are reported as 400, like any other validation failure."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    detail = first.get("msg") or get_error_message("validation_error")
    return _message_response(400, f"{field}: {detail}" if field else detail)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("IntegrityError on %s %s: %s", request.method, request.url.path, exc.orig)
    error_str = str(exc.orig).lower()
    if "duplicate" in error_str or "unique" in error_str:
        return _message_response(409, "This record already exists. Please check your input.")
    if "foreign key" in error_str:
        return _message_response(400, "Invalid reference. The related record may have been deleted.")
    return _message_response(500, get_error_message("database_error"))


async def operational_error_handler(request: Request, exc: OperationalError):
    logger.exception("Database OperationalError: %s", exc)
    return _message_response(503, get_error_message("database_error"))


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database SQLAlchemyError: %s", exc)
    return _message_response(500, get_error_message("database_error"))


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return _message_response(500, get_error_message("server_error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
