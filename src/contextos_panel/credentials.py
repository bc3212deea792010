from __future__ import annotations
import json
import logging
from pathlib import Path
DEFAULT_STORE = Path.home() / ".contextos_panel" / "credentials.json"
STORAGE_KEY = "contextos_preview_api_key"
logger = logging.getLogger(__name__)
def load_api_key(store: Path = DEFAULT_STORE) -> str:
    if not store.exists():
        return ""
    try:
        data = json.loads(store.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read credential store %s: %s", store, exc)
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get(STORAGE_KEY) or "")
def save_api_key(api_key: str, store: Path = DEFAULT_STORE) -> None:
    if not api_key:
        return
    store.parent.mkdir(parents=True, exist_ok=True)
    store.write_text(json.dumps({STORAGE_KEY: api_key}, indent=2), encoding="utf-8")
def clear_api_key(store: Path = DEFAULT_STORE) -> None:
    try:
        store.unlink()
    except FileNotFoundError:
        pass
class CredentialStore:
    def __init__(self, path: Path = DEFAULT_STORE) -> None:
        self.path = Path(path)
    def load(self) -> str:
        return load_api_key(self.path)
    def save(self, api_key: str) -> None:
        save_api_key(api_key, self.path)
    def clear(self) -> None:
        clear_api_key(self.path)
