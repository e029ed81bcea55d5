"""
JWT session tokens for the store's auth subsystem.
"""

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from portfolio.config import get_settings


class AccessTokenPayload(BaseModel):
    """Decoded access token."""

    sub: str  # identity id
    email: str
    exp: datetime
    iat: datetime
    jti: str


class RefreshTokenPayload(BaseModel):
    """Decoded refresh token."""

    sub: str
    exp: datetime
    iat: datetime
    jti: str


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    expires_in: int  # seconds until the access token expires


class TokenExpired(Exception):
    """Raised when a well-formed token is past its expiry."""


class JWTManager:
    """
    Token creation and verification.

    Access tokens are short-lived; refresh tokens are long-lived and rotated.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
        refresh_token_expire_days: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )
        self.refresh_token_expire_days = (
            refresh_token_expire_days or settings.refresh_token_expire_days
        )

    def _encode(self, claims: dict, lifetime: timedelta) -> tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        expire = now + lifetime
        payload = {**claims, "iat": now, "exp": expire, "jti": str(uuid.uuid4())}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm), expire

    def create_token_pair(
        self,
        user_id: uuid.UUID,
        email: str,
        access_lifetime: Optional[timedelta] = None,
    ) -> TokenPair:
        """Issue an access/refresh pair for an identity."""
        access_token, access_exp = self._encode(
            {"sub": str(user_id), "email": email, "type": "access"},
            access_lifetime or timedelta(minutes=self.access_token_expire_minutes),
        )
        refresh_token, _ = self._encode(
            {"sub": str(user_id), "type": "refresh"},
            timedelta(days=self.refresh_token_expire_days),
        )
        expires_in = max(0, int((access_exp - datetime.now(timezone.utc)).total_seconds()))
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=access_exp,
            expires_in=expires_in,
        )

    def _decode(self, token: str, expected_type: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired(str(exc)) from exc
        except JWTError:
            return None
        if payload.get("type") != expected_type:
            return None
        return payload

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """
        Decode an access token.

        Returns None for malformed or foreign tokens and raises TokenExpired for
        expired ones, so callers can tell "no session" from "session ended".
        """
        payload = self._decode(token, "access")
        if payload is None:
            return None
        return AccessTokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            jti=payload["jti"],
        )

    def verify_refresh_token(self, token: str) -> Optional[RefreshTokenPayload]:
        """Decode a refresh token; expired or invalid tokens yield None."""
        try:
            payload = self._decode(token, "refresh")
        except TokenExpired:
            return None
        if payload is None:
            return None
        return RefreshTokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            jti=payload["jti"],
        )

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 of a token, for storing refresh tokens."""
        return hashlib.sha256(token.encode()).hexdigest()
