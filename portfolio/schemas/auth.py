"""
Authentication schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Credentials(BaseModel):
    """Sign-in / sign-up request. Checked by the auth validator, not here."""

    email: str = ""
    password: str = ""


class RefreshRequest(BaseModel):
    refresh_token: str


class IdentityResponse(BaseModel):
    """The signed-in identity."""

    user_id: uuid.UUID
    email: str
    is_admin: bool


class SessionResponse(BaseModel):
    """Tokens for a new or refreshed session."""

    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: datetime
    identity: IdentityResponse
