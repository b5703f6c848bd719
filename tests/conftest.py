import pytest
import structlog

from server_network.config import Settings
from tests.mocks.cloud import FakeCloudClient


@pytest.fixture
def cloud():
    return FakeCloudClient()


@pytest.fixture
def settings(monkeypatch):
    """Settings with zero delays so retries and polling don't sleep."""
    for var in ("HCLOUD_TOKEN", "HCLOUD_MAX_RETRIES", "HCLOUD_ENDPOINT"):
        monkeypatch.delenv(var, raising=False)
    return Settings(
        _env_file=None,
        token="test-token",
        poll_interval=0,
        action_timeout=5,
        max_retries=3,
        retry_backoff_base=0,
        retry_backoff_max=0,
    )


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
