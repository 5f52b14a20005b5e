"""Error taxonomy of the vault and the FastAPI handlers that render it."""

import logging
from enum import Enum
from typing import Optional

import pydantic
from fastapi import (
    HTTPException,
    Request,
    status,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class VaultError(Exception):
    """Base class for every error the vault surfaces to a client."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthErrorKind(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"


class AuthError(VaultError):
    """Missing, malformed or rejected credential."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, kind: AuthErrorKind = AuthErrorKind.INVALID):
        super().__init__(message)
        self.kind = kind


class AuthorizationError(AuthError):
    """The caller is authenticated but does not own the target record."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, kind=AuthErrorKind.INVALID)


class ValidationError(VaultError):
    """Empty or malformed request payload."""

    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(VaultError):
    """Blob store put/get/remove failure."""


class DbError(VaultError):
    """Metadata store insert/query/delete failure."""


class NotFoundError(VaultError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthProviderError(VaultError):
    """The auth provider rejected a register/login request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_vault_errors(request: Request, exc: VaultError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def handle_http_exceptions(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


def _format_validation_errors(errors) -> str:
    return "; ".join(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in errors)


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed client payloads are reported as 400 like every other validation failure."""
    return error_response(status.HTTP_400_BAD_REQUEST, _format_validation_errors(exc.errors()) or "Invalid request")


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """A model built server-side failed validation."""
    logger.error(f"Response model validation failed: {_format_validation_errors(exc.errors())}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates during the request/response cycle."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception(err)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
