import logging
from typing import Optional

import pydantic

from vault_api.auth.provider import AuthProvider
from vault_api.errors import AuthError, AuthErrorKind, AuthProviderError
from vault_api.schemas import UserIdentity

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header.

    Raises `AuthError` of kind MISSING if the header is absent or malformed.
    """
    if not authorization:
        raise AuthError("No Authorization header", kind=AuthErrorKind.MISSING)
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise AuthError("Malformed Authorization header", kind=AuthErrorKind.MISSING)
    return parts[1]


class IdentityVerifier:
    """Turns a bearer credential into a verified `UserIdentity`.

    Stateless and side-effect free, so verification is always safe to retry.
    """

    def __init__(self, provider: AuthProvider):
        self.provider = provider

    def verify(self, authorization: Optional[str]) -> UserIdentity:
        token = parse_bearer_token(authorization)
        try:
            user = self.provider.get_user(token)
        except AuthProviderError as e:
            raise AuthError("Invalid Token", kind=AuthErrorKind.INVALID) from e

        if not isinstance(user, dict) or not user.get("id"):
            raise AuthError("Invalid Token", kind=AuthErrorKind.INVALID)
        try:
            return UserIdentity.model_validate(user)
        except pydantic.ValidationError as e:
            logger.warning(f"Auth provider returned an unusable user object: {e}")
            raise AuthError("Invalid Token", kind=AuthErrorKind.INVALID) from e
