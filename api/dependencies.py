"""
FastAPI dependencies (shared across routes).

Every external collaborator is provided here so tests can swap in fakes
through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from config.settings import Settings, config
from connectors.encryption import TokenCipher
from connectors.gmail import GmailConnector
from connectors.oauth_client import OAuthClient
from connectors.token_manager import TokenStore
from database.helpers import QueryStore, RunTimeStore
from database.session import get_session_factory
from scheduling.registrar import SchedulingRegistrar


def get_settings() -> Settings:
    return config


@lru_cache(maxsize=1)
def _gmail_connector() -> GmailConnector:
    return GmailConnector(config)


def get_oauth_client() -> OAuthClient:
    """A fresh credential holder per request around the shared connector."""
    return OAuthClient(_gmail_connector())


@lru_cache(maxsize=1)
def get_token_store() -> TokenStore:
    return TokenStore(get_session_factory(), TokenCipher(config.token_encryption_key))


@lru_cache(maxsize=1)
def get_query_store() -> QueryStore:
    return QueryStore(get_session_factory())


@lru_cache(maxsize=1)
def get_run_time_store() -> RunTimeStore:
    return RunTimeStore(get_session_factory())


@lru_cache(maxsize=1)
def get_registrar() -> SchedulingRegistrar:
    return SchedulingRegistrar(config)
