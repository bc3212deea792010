from __future__ import annotations
import logging
import sys
from pathlib import Path
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
ROOT = Path(__file__).parent
sys.path.append(str(ROOT / "src"))
from contextos_panel import PanelConfig, PanelRuntime  # type: ignore  # noqa: E402
from contextos_panel.webapp import create_app  # type: ignore  # noqa: E402
if __name__ == "__main__":
    import socket
    import threading
    import time
    import webbrowser
    def _find_open_port(host: str, preferred: int) -> int:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                s.bind((host, preferred))
                return preferred
            except OSError:
                pass
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((host, 0))
            return s.getsockname()[1]
    config = PanelConfig.from_env()
    host = config.host
    port = _find_open_port(host, config.port)
    app = create_app(PanelRuntime(config))
    def _open_browser() -> None:
        time.sleep(1)
        try:
            webbrowser.open(f"http://{host}:{port}")
        except webbrowser.Error as exc:
            logging.getLogger(__name__).warning("Could not open browser: %s", exc)
    threading.Thread(target=_open_browser, daemon=True).start()
    app.run(host=host, port=port, debug=False)
