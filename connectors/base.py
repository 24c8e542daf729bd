"""
BaseConnector — abstract interface for an OAuth2 provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from connectors.schemas import Credential


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug, e.g. 'gmail'."""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes required by this connector."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: Optional[str] = None) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Parameters
        ----------
        state : str, optional
            Opaque state string echoed back to the callback.

        Returns
        -------
        The full URL to redirect the user to.
        """
        ...

    @abstractmethod
    async def handle_callback(self, code: str) -> Credential:
        """Exchange the authorization code for a credential."""
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """
        Refresh an expired access token.

        Returns
        -------
        dict with keys: access_token, expires_in, (optional) refresh_token
        """
        ...

    @abstractmethod
    async def get_profile_email(self, access_token: str) -> str:
        """Return the email address of the account that owns the token."""
        ...

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """
        Return True if this connector has all required config
        (client ID, secret, ...).
        """
        return True
