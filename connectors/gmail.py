"""
GmailConnector — OAuth2 web flow for read-only Gmail access.

The authorization URL always forces the consent prompt so Google issues a
refresh token on every run, not only the first time a user authorizes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from config.settings import Settings, config
from connectors.base import BaseConnector
from connectors.schemas import Credential
from core.errors import ProfileLookupError, TokenExchangeError

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GMAIL_PROFILE_URL = "https://gmail.googleapis.com/gmail/v1/users/me/profile"

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"


class GmailConnector(BaseConnector):
    """OAuth2 connector for Gmail."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or config
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "gmail"

    @property
    def scopes(self) -> List[str]:
        return [GMAIL_READONLY_SCOPE]

    def is_configured(self) -> bool:
        return bool(self._settings.google_client_id and self._settings.google_client_secret)

    def _redirect_uri(self) -> str:
        return f"{self._settings.oauth_redirect_base.rstrip('/')}/oauth2callback"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=30.0)

    def get_auth_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self._settings.google_client_id,
            "redirect_uri": self._redirect_uri(),
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",       # gets refresh_token
            "prompt": "consent",            # force consent to always get refresh_token
        }
        if state:
            params["state"] = state
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def handle_callback(self, code: str) -> Credential:
        """Exchange auth code for tokens."""
        try:
            async with self._client() as client:
                resp = await client.post(
                    _GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self._settings.google_client_id,
                        "client_secret": self._settings.google_client_secret,
                        "redirect_uri": self._redirect_uri(),
                        "grant_type": "authorization_code",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Authorization code exchange failed: {exc}") from exc

        if "access_token" not in data:
            raise TokenExchangeError("Token endpoint response carried no access_token")
        return Credential.from_token_response(data)

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """Use refresh token to get a new access token."""
        try:
            async with self._client() as client:
                resp = await client.post(
                    _GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self._settings.google_client_id,
                        "client_secret": self._settings.google_client_secret,
                        "refresh_token": refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Token refresh failed: {exc}") from exc

        return {
            "access_token": data["access_token"],
            "expires_in": data.get("expires_in", 3600),
            "refresh_token": data.get("refresh_token"),
            "scope": data.get("scope", ""),
        }

    async def get_profile_email(self, access_token: str) -> str:
        """Resolve the authenticated user's address from the Gmail profile."""
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with self._client() as client:
                resp = await client.get(_GMAIL_PROFILE_URL, headers=headers)
                resp.raise_for_status()
                profile = resp.json()
        except httpx.HTTPError as exc:
            raise ProfileLookupError(f"Gmail profile lookup failed: {exc}") from exc

        email = profile.get("emailAddress")
        if not email:
            raise ProfileLookupError("Gmail profile carried no emailAddress")
        return email
