"""
Token manager — persist / load / refresh OAuth credentials keyed by email.

``TokenStore`` owns the ``user_credentials`` table.  ``fetch_token`` is the
single entry point handlers use to get a live credential for a user: it
loads the stored credential, applies it to the OAuth client, and refreshes
it (saving the result) when it is about to expire.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from connectors.encryption import TokenCipher
from connectors.oauth_client import OAuthClient
from connectors.schemas import Credential
from core.errors import CredentialNotFoundError
from database.helpers import upsert_by_email
from database.models import UserCredential

logger = logging.getLogger(__name__)


class TokenStore:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        cipher: Optional[TokenCipher] = None,
    ) -> None:
        self._session_factory = session_factory
        self._cipher = cipher or TokenCipher()

    async def save_token(self, email: str, credential: Credential) -> None:
        """Store the credential for ``email``, replacing any previous one."""
        async with self._session_factory() as session:
            await upsert_by_email(
                session,
                UserCredential,
                email,
                {
                    "access_token": self._cipher.encrypt(credential.access_token),
                    "refresh_token": (
                        self._cipher.encrypt(credential.refresh_token)
                        if credential.refresh_token
                        else None
                    ),
                    "token_type": credential.token_type,
                    "scopes": list(credential.scopes),
                    "expiry": credential.expiry,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            await session.commit()
        logger.info("Saved credential for %s", email)

    async def load_token(self, email: str) -> Credential:
        """
        Return the stored credential for ``email``.

        Raises
        ------
        CredentialNotFoundError
            If the user never completed the authorization flow.
        """
        async with self._session_factory() as session:
            row = await session.get(UserCredential, email)
            if row is None:
                raise CredentialNotFoundError(email)

            expiry = row.expiry
            if expiry is not None and expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
            return Credential(
                access_token=self._cipher.decrypt(row.access_token),
                refresh_token=self._cipher.decrypt(row.refresh_token) if row.refresh_token else None,
                expiry=expiry,
                token_type=row.token_type or "Bearer",
                scopes=row.scopes or [],
            )


async def fetch_token(client: OAuthClient, store: TokenStore, email: str) -> Credential:
    """
    Load the stored credential for ``email`` and apply it to ``client``.

    An expired credential with a refresh token is refreshed and saved back
    before being returned.  A missing credential propagates as
    ``CredentialNotFoundError``.
    """
    credential = await store.load_token(email)
    client.set_credentials(credential)

    if credential.is_expired() and credential.refresh_token:
        credential = await client.refresh()
        await store.save_token(email, credential)
        logger.info("Stored refreshed credential for %s", email)

    return credential
