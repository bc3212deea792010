from __future__ import annotations
import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
DEFAULT_TELEMETRY_DIR = Path.home() / ".contextos_panel" / "logs"
DEFAULT_TELEMETRY_FILE = "telemetry.jsonl"
logger = logging.getLogger(__name__)
def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
def _truncate(s: str, limit: int) -> str:
    if not s:
        return ""
    s = str(s)
    return s if len(s) <= limit else (s[:limit] + "\n...TRUNCATED...")
@dataclass
class TelemetryConfig:
    dir_path: Path = DEFAULT_TELEMETRY_DIR
    filename: str = DEFAULT_TELEMETRY_FILE
    max_payload_chars: int = 20_000
    fallback_dir: Path = field(default_factory=lambda: Path.home() / ".contextos_panel" / "telemetry_fallback")
    raise_on_error: bool = False
def log_event(
    event_type: str,
    *,
    action: str,
    app_version: str = "",
    prompt_id: Optional[str] = None,
    duration_ms: Optional[int] = None,
    success: bool = True,
    error: str = "",
    payload: Optional[Dict[str, Any]] = None,
    config: Optional[TelemetryConfig] = None,
) -> None:
    cfg = config or TelemetryConfig()
    dir_path = Path(os.environ.get("CONTEXTOS_TELEMETRY_DIR", str(cfg.dir_path)))
    filename = os.environ.get("CONTEXTOS_TELEMETRY_FILE", cfg.filename)
    record: Dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "ts_utc": _utc_now_iso(),
        "event_type": event_type,
        "action": action,
        "app_version": app_version,
        "prompt_id": prompt_id,
        "duration_ms": duration_ms,
        "success": bool(success),
    }
    if error:
        record["error"] = _truncate(error, 8_000)
    if payload:
        record["payload"] = {
            k: _truncate(v, cfg.max_payload_chars) if isinstance(v, str) else v
            for k, v in payload.items()
        }
    line = json.dumps(record, ensure_ascii=False) + "\n"
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
        with open(dir_path / filename, "a", encoding="utf-8", newline="\n") as f:
            f.write(line)
    except OSError as exc:
        logger.warning("Telemetry write to %s failed: %s", dir_path, exc)
        try:
            cfg.fallback_dir.mkdir(parents=True, exist_ok=True)
            with open(cfg.fallback_dir / filename, "a", encoding="utf-8", newline="\n") as f:
                f.write(line)
        except OSError:
            logger.warning("Telemetry fallback write failed", exc_info=True)
        if cfg.raise_on_error:
            raise
class Timer:
    def __init__(self) -> None:
        self._t0 = time.perf_counter()
    def ms(self) -> int:
        return int((time.perf_counter() - self._t0) * 1000)
