from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from .api_client import ContextOSClient
from .credentials import DEFAULT_STORE
def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default
def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default
@dataclass
class PanelConfig:
    base_url: str = ContextOSClient.DEFAULT_BASE_URL
    poll_interval: float = 2.0
    max_poll_attempts: int = 30
    request_timeout: float = 30.0
    copied_feedback_seconds: float = 2.0
    credentials_path: Path = field(default_factory=lambda: DEFAULT_STORE)
    host: str = "127.0.0.1"
    port: int = 8000
    @classmethod
    def from_env(cls) -> "PanelConfig":
        credentials = os.environ.get("CONTEXTOS_CREDENTIALS", "").strip()
        return cls(
            base_url=os.environ.get("CONTEXTOS_API_BASE", "").strip() or ContextOSClient.DEFAULT_BASE_URL,
            poll_interval=_env_float("CONTEXTOS_POLL_INTERVAL", 2.0),
            max_poll_attempts=_env_int("CONTEXTOS_MAX_POLL_ATTEMPTS", 30),
            request_timeout=_env_float("CONTEXTOS_REQUEST_TIMEOUT", 30.0),
            credentials_path=Path(credentials).expanduser() if credentials else DEFAULT_STORE,
            host=os.getenv("CONTEXTOS_UI_HOST", "127.0.0.1"),
            port=_env_int("CONTEXTOS_UI_PORT", 8000),
        )
    def client_for(self, api_key: str) -> ContextOSClient:
        return ContextOSClient(api_key=api_key, base_url=self.base_url, timeout=self.request_timeout)
