"""
Domain exception taxonomy and the global exception handlers that render it.

Every engine raises one of the classes below; the HTTP layer converts them to
responses in one place so the engines stay free of transport concerns.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import logging

# Set up logging
logger = logging.getLogger(__name__)

class CredentialingError(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(CredentialingError):
    """Malformed or missing required input. Always caller-correctable."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid input"


class DuplicateError(CredentialingError):
    """Uniqueness constraint (login email) violated."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Email already registered"


class InvalidTransitionError(CredentialingError):
    """Requested state change is illegal from the account's current state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Invalid status transition"

    def __init__(self, account_id: str, current_status, requested: str):
        current = getattr(current_status, "value", current_status)
        self.account_id = account_id
        self.current_status = current
        self.requested = requested
        super().__init__(
            f"Cannot {requested} account {account_id} while it is {current}"
        )


class PermissionDeniedError(CredentialingError):
    """Raised at the boundary when the authorization guard reports a denial."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Permission denied"


class NotFoundError(CredentialingError):
    """Referenced account, admin or document does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class InvalidCredentialsError(CredentialingError):
    """Login email/password pair did not match an active admin."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid credentials"


class PersistenceError(CredentialingError):
    """The storage collaborator failed. Fatal to the current call."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage operation failed"


async def credentialing_exception_handler(request: Request, exc: CredentialingError):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if isinstance(exc, PersistenceError):
        logger.error(f"Persistence failure on {request.url.path}: {exc.detail}")
        # No partial-state claim towards the caller
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": "The operation could not be completed. Please try again later."}
        )
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": jsonable_encoder(exc.errors())
        }
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(CredentialingError, credentialing_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
