"""Pytest configuration and fixtures

Every test gets its own credential file and telemetry directory under
tmp_path, and a scripted client in place of the ContextOS service. Polling
runs with a zero interval so bounded-retry tests finish immediately.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from contextos_panel.config import PanelConfig
from contextos_panel.credentials import CredentialStore
from contextos_panel.history import HistoryController
from contextos_panel.lifecycle import PromptLifecycleController
from contextos_panel.state import PanelState, StateStore
from fakes import FakeClient


TEST_API_KEY = "test-key-123"


@pytest.fixture(autouse=True)
def _isolated_telemetry(tmp_path, monkeypatch):
    """Keep telemetry lines out of the real home directory."""
    monkeypatch.setenv("CONTEXTOS_TELEMETRY_DIR", str(tmp_path / "telemetry"))


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def client_factory(fake_client):
    def factory(api_key: str) -> FakeClient:
        fake_client.api_key = api_key
        return fake_client

    return factory


@pytest.fixture
def credentials(tmp_path):
    store = CredentialStore(tmp_path / "credentials.json")
    store.save(TEST_API_KEY)
    return store


@pytest.fixture
def store(credentials):
    return StateStore.from_credentials(credentials)


@pytest.fixture
def lifecycle(store, client_factory):
    return PromptLifecycleController(store, client_factory, poll_interval=0, max_attempts=30)


@pytest.fixture
def history(store, client_factory, lifecycle):
    return HistoryController(store, client_factory, lifecycle)


@pytest.fixture
def panel_config(tmp_path):
    return PanelConfig(
        poll_interval=0,
        max_poll_attempts=30,
        copied_feedback_seconds=0.05,
        credentials_path=tmp_path / "credentials.json",
    )


@pytest.fixture
def unauthenticated_store(tmp_path):
    return StateStore(CredentialStore(tmp_path / "empty.json"), PanelState())
