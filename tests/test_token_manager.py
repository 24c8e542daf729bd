"""
Token store and credential lifecycle tests (SQLite in memory).
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from connectors.encryption import TokenCipher
from connectors.oauth_client import OAuthClient
from connectors.schemas import Credential
from connectors.token_manager import TokenStore, fetch_token
from core.errors import CredentialNotFoundError
from database.models import UserCredential
from database.session import init_db
from tests.fakes import FakeConnector


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


def _credential(**overrides) -> Credential:
    values = {
        "access_token": "at",
        "refresh_token": "rt",
        "expiry": datetime.now(timezone.utc) + timedelta(hours=1),
        "scopes": ["https://www.googleapis.com/auth/gmail.readonly"],
    }
    values.update(overrides)
    return Credential(**values)


class TestCredential:
    def test_expiry_leeway(self):
        soon = datetime.now(timezone.utc) + timedelta(seconds=60)
        assert _credential(expiry=soon).is_expired()
        assert not _credential(expiry=soon).is_expired(leeway=0)
        assert not _credential(expiry=None).is_expired()


class TestTokenStore:
    @pytest.mark.asyncio
    async def test_save_then_load(self, session_factory):
        store = TokenStore(session_factory)
        original = _credential()
        await store.save_token("jane@example.com", original)

        loaded = await store.load_token("jane@example.com")
        assert loaded.access_token == "at"
        assert loaded.refresh_token == "rt"
        assert loaded.scopes == original.scopes
        assert loaded.expiry.tzinfo is not None

    @pytest.mark.asyncio
    async def test_missing_credential_raises(self, session_factory):
        with pytest.raises(CredentialNotFoundError):
            await TokenStore(session_factory).load_token("nobody@example.com")

    @pytest.mark.asyncio
    async def test_save_overwrites(self, session_factory):
        store = TokenStore(session_factory)
        await store.save_token("jane@example.com", _credential(access_token="one"))
        await store.save_token("jane@example.com", _credential(access_token="two", refresh_token=None))

        loaded = await store.load_token("jane@example.com")
        assert loaded.access_token == "two"
        assert loaded.refresh_token is None

    @pytest.mark.asyncio
    async def test_tokens_encrypted_at_rest(self, session_factory):
        cipher = TokenCipher(Fernet.generate_key().decode())
        store = TokenStore(session_factory, cipher)
        await store.save_token("jane@example.com", _credential())

        async with session_factory() as session:
            row = (await session.execute(select(UserCredential))).scalar_one()
        assert row.access_token != "at"
        assert cipher.decrypt(row.access_token) == "at"
        assert (await store.load_token("jane@example.com")).access_token == "at"


class TestFetchToken:
    @pytest.mark.asyncio
    async def test_applies_stored_credential(self, session_factory):
        store = TokenStore(session_factory)
        await store.save_token("jane@example.com", _credential())
        client = OAuthClient(FakeConnector())

        credential = await fetch_token(client, store, "jane@example.com")
        assert client.get_credentials() == credential
        assert client.connector.refresh_calls == []

    @pytest.mark.asyncio
    async def test_refreshes_and_saves_expired_credential(self, session_factory):
        store = TokenStore(session_factory)
        expired = _credential(expiry=datetime.now(timezone.utc) - timedelta(minutes=5))
        await store.save_token("jane@example.com", expired)
        client = OAuthClient(FakeConnector())

        credential = await fetch_token(client, store, "jane@example.com")

        assert client.connector.refresh_calls == ["rt"]
        assert credential.access_token == "refreshed-access"
        # Google did not rotate the refresh token, so the old one survives.
        assert credential.refresh_token == "rt"
        assert (await store.load_token("jane@example.com")).access_token == "refreshed-access"

    @pytest.mark.asyncio
    async def test_missing_credential_propagates(self, session_factory):
        client = OAuthClient(FakeConnector())
        with pytest.raises(CredentialNotFoundError):
            await fetch_token(client, TokenStore(session_factory), "nobody@example.com")
        assert not client.has_credentials
