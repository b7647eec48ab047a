import pytest

from mock_service import BASE_URL, MockService
from tripo3d import Settings, TripoClient


@pytest.fixture(autouse=True)
def no_ambient_credentials(monkeypatch):
    # Tests must never pick up a developer's real key
    monkeypatch.delenv("TRIPO_API_KEY", raising=False)
    monkeypatch.delenv("TRIPO_BASE_URL", raising=False)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def service():
    return MockService()


@pytest.fixture
def make_client(service, settings):
    def _make(**kwargs) -> TripoClient:
        kwargs.setdefault("polling_interval", 0)
        return TripoClient(
            "test_api_key",
            BASE_URL,
            http_client=service.http_client(),
            settings=settings,
            **kwargs,
        )

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
