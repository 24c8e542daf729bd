"""
OAuthClient — holds the credential for the current request.

Wraps a connector so handlers can build the consent URL, exchange a code,
refresh, and resolve the profile without touching module-level state.
"""

from __future__ import annotations

import logging
from typing import Optional

from connectors.base import BaseConnector
from connectors.schemas import Credential

logger = logging.getLogger(__name__)


class OAuthClient:
    def __init__(self, connector: BaseConnector) -> None:
        self.connector = connector
        self._credentials: Optional[Credential] = None

    def set_credentials(self, credentials: Credential) -> None:
        self._credentials = credentials

    def get_credentials(self) -> Credential:
        if self._credentials is None:
            raise RuntimeError("OAuth client has no credentials set")
        return self._credentials

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None

    def generate_auth_url(self, state: Optional[str] = None) -> str:
        return self.connector.get_auth_url(state)

    async def get_token(self, code: str) -> Credential:
        return await self.connector.handle_callback(code)

    async def refresh(self) -> Credential:
        """
        Refresh the held credential and apply the result.

        Google does not always rotate the refresh token; the old one is
        kept when the response omits it.
        """
        current = self.get_credentials()
        if not current.refresh_token:
            raise RuntimeError("Credential has no refresh token")

        data = await self.connector.refresh_access_token(current.refresh_token)
        if not data.get("refresh_token"):
            data["refresh_token"] = current.refresh_token
        if not data.get("scope"):
            data["scope"] = " ".join(current.scopes)
        refreshed = Credential.from_token_response(data)
        self.set_credentials(refreshed)
        logger.info("Refreshed %s access token", self.connector.provider_name)
        return refreshed

    async def get_profile_email(self) -> str:
        return await self.connector.get_profile_email(self.get_credentials().access_token)
