from .identity import IdentityVerifier, parse_bearer_token
from .provider import AuthProvider

__all__ = ['AuthProvider', 'IdentityVerifier', 'parse_bearer_token']
