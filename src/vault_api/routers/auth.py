import logging
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    Header,
    status,
)
from starlette.concurrency import run_in_threadpool

from vault_api.auth.identity import parse_bearer_token
from vault_api.dependencies import get_services
from vault_api.errors import (
    AuthError,
    AuthProviderError,
    ValidationError,
)
from vault_api.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
)
from vault_api.services import VaultServices

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/register", response_model=RegisterResponse)
async def register(
    body: RegisterRequest,
    services: VaultServices = Depends(get_services),
) -> RegisterResponse:
    """Create an account with the auth provider."""
    if not body.email or not body.password:
        raise ValidationError("Email and password required")
    try:
        user = await run_in_threadpool(
            services.auth_provider.sign_up, body.email, body.password, body.username
        )
    except AuthProviderError as e:
        raise AuthProviderError(e.message, status_code=status.HTTP_400_BAD_REQUEST) from e
    return RegisterResponse(message="Success", user=user)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={
        status.HTTP_403_FORBIDDEN: {"description": "Credentials are valid but the account has no session yet."},
    },
)
async def login(
    body: LoginRequest,
    services: VaultServices = Depends(get_services),
) -> LoginResponse:
    """
    Sign in and receive a bearer token.

    The `username` field carries the account's e-mail address.
    """
    if not body.username or not body.password:
        raise ValidationError("Email and password required")

    logger.info(f"Login attempt for: {body.username}")
    try:
        session = await run_in_threadpool(
            services.auth_provider.sign_in_with_password, body.username, body.password
        )
    except AuthProviderError as e:
        logger.info(f"Login failed for {body.username}: {e.message}")
        raise AuthProviderError(e.message, status_code=status.HTTP_401_UNAUTHORIZED) from e

    token = session.get("access_token") if isinstance(session, dict) else None
    if not token:
        logger.info(f"Login for {body.username} returned no session; e-mail not confirmed?")
        raise AuthProviderError(
            "Login successful but access denied. Please confirm your e-mail address.",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return LoginResponse(message="Login success", token=token, user=session.get("user") or {})


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(
    authorization: Optional[str] = Header(None),
    services: VaultServices = Depends(get_services),
) -> MessageResponse:
    """End the session. Always succeeds; a provider failure is only logged."""
    try:
        token = parse_bearer_token(authorization)
    except AuthError:
        token = None

    if token:
        try:
            await run_in_threadpool(services.auth_provider.sign_out, token)
        except AuthProviderError as e:
            logger.warning(f"Token revocation failed during logout: {e.message}")

    return MessageResponse(message="Logged out")
