"""
Identity - password hashing and session tokens.
"""

from portfolio.kernel.identity.password import PasswordHasher, hash_password, verify_password
from portfolio.kernel.identity.jwt import (
    AccessTokenPayload,
    JWTManager,
    RefreshTokenPayload,
    TokenExpired,
    TokenPair,
)

__all__ = [
    "PasswordHasher",
    "hash_password",
    "verify_password",
    "AccessTokenPayload",
    "JWTManager",
    "RefreshTokenPayload",
    "TokenExpired",
    "TokenPair",
]
