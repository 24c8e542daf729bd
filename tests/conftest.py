import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_oauth_client,
    get_query_store,
    get_registrar,
    get_run_time_store,
    get_settings,
    get_token_store,
)
from config.settings import Settings
from connectors.oauth_client import OAuthClient
from main import create_app
from tests.fakes import (
    FakeConnector,
    FakeRegistrar,
    InMemoryQueryStore,
    InMemoryRunTimeStore,
    InMemoryTokenStore,
)


class Collaborators:
    """Bundle of fakes wired into the app for one test."""

    def __init__(self) -> None:
        self.connector = FakeConnector()
        self.tokens = InMemoryTokenStore()
        self.queries = InMemoryQueryStore()
        self.run_times = InMemoryRunTimeStore()
        self.registrar = FakeRegistrar()
        self.settings = Settings(
            query_signing_secret="test-secret",
            gcloud_project="test",
            _env_file=None,
        )


@pytest.fixture
def fakes() -> Collaborators:
    return Collaborators()


@pytest.fixture
def client(fakes: Collaborators):
    app = create_app(init_database=False)
    app.dependency_overrides[get_oauth_client] = lambda: OAuthClient(fakes.connector)
    app.dependency_overrides[get_token_store] = lambda: fakes.tokens
    app.dependency_overrides[get_query_store] = lambda: fakes.queries
    app.dependency_overrides[get_run_time_store] = lambda: fakes.run_times
    app.dependency_overrides[get_registrar] = lambda: fakes.registrar
    app.dependency_overrides[get_settings] = lambda: fakes.settings
    with TestClient(app) as test_client:
        yield test_client
