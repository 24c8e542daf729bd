"""
Pydantic schemas for OAuth credentials.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Credential(BaseModel):
    """OAuth access/refresh token pair plus expiry."""

    access_token: str
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None
    token_type: str = "Bearer"
    scopes: List[str] = Field(default_factory=list)

    @classmethod
    def from_token_response(cls, data: Dict[str, Any]) -> "Credential":
        """Build a credential from a token endpoint JSON response."""
        expires_in = data.get("expires_in")
        expiry = None
        if expires_in is not None:
            expiry = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expiry=expiry,
            token_type=data.get("token_type", "Bearer"),
            scopes=data.get("scope", "").split(),
        )

    def is_expired(self, leeway: int = 120) -> bool:
        if self.expiry is None:
            return False
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry < datetime.now(timezone.utc) + timedelta(seconds=leeway)
