"""
Credential providers used by the HTTP transport.
"""

from .tokens import (
    AuthenticationError,
    JWTGrantAuth,
    StaticTokenProvider,
    TokenProvider,
    fetch_user_info,
    verify_account,
)

__all__ = [
    "AuthenticationError",
    "JWTGrantAuth",
    "StaticTokenProvider",
    "TokenProvider",
    "fetch_user_info",
    "verify_account",
]
