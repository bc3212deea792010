from __future__ import annotations
from io import BytesIO
from typing import Optional
from flask import Flask, jsonify, render_template_string, request, send_file
from . import __version__ as APP_VERSION
from .composer import compose_state
from .docx_utils import DocxExportError, composite_to_docx_bytes
from .rendering import StaleEventError
from .runtime import PanelRuntime
from .telemetry import log_event
DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
def _int_arg(raw) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
def create_app(runtime: Optional[PanelRuntime] = None) -> Flask:
    app = Flask(__name__)
    runtime = runtime or PanelRuntime()
    runtime.start()
    app.extensions["contextos_runtime"] = runtime
    @app.route("/")
    def index():
        app.logger.info("index() called")
        snap = runtime.call(runtime.snapshot)
        return render_template_string(PAGE_TEMPLATE, snap=snap, app_version=APP_VERSION)
    @app.route("/panel")
    def panel():
        revision = _int_arg(request.args.get("revision"))
        snap = runtime.call(lambda: runtime.refresh(revision))
        if snap is None:
            return jsonify(changed=False, revision=revision, loading=runtime.store.state.loading)
        return jsonify(snap.to_json())
    @app.route("/events/<path:control_id>", methods=["POST"])
    def events(control_id: str):
        data = request.get_json(silent=True) or {}
        value = data.get("value")
        generation = _int_arg(data.get("generation"))
        try:
            snap = runtime.call(lambda: runtime.dispatch(control_id, None if value is None else str(value), generation))
        except StaleEventError as exc:
            app.logger.info("Rejected stale event: %s", exc)
            return jsonify(error=str(exc), stale=True), 409
        if snap is None:
            return jsonify(changed=False)
        return jsonify(snap.to_json())
    @app.route("/export.docx")
    def export_docx():
        async def _composite() -> tuple:
            s = runtime.store.state
            return compose_state(s), s.current_prompt_id
        composite, prompt_id = runtime.call(_composite)
        try:
            docx_bytes = composite_to_docx_bytes(composite)
        except DocxExportError as exc:
            return jsonify(error=str(exc)), 404
        log_event("export", action="docx", app_version=APP_VERSION, prompt_id=prompt_id, payload={"chars": len(composite)})
        return send_file(
            BytesIO(docx_bytes),
            mimetype=DOCX_MIMETYPE,
            as_attachment=True,
            download_name=f"contextos_prompt_{prompt_id or 'draft'}.docx",
        )
    return app
PAGE_TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>ContextOS</title>
  <style>
    :root {
      --bg: #f5f7fb;
      --card: #ffffff;
      --muted: #475569;
      --text: #0f172a;
      --accent: #2563eb;
      --danger: #dc2626;
      --border: rgba(15, 23, 42, 0.08);
      --shadow: 0 24px 70px rgba(15, 23, 42, 0.08);
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      font-family: 'Inter', system-ui, -apple-system, sans-serif;
      background: radial-gradient(circle at 12% 10%, rgba(34, 211, 238, 0.18), transparent 26%), var(--bg);
      color: var(--text);
      min-height: 100vh;
    }
    button { font: inherit; cursor: pointer; }
    button[disabled] { opacity: 0.5; cursor: not-allowed; }
    .panel { position: fixed; top: 0; right: 0; height: 100vh; width: 420px; display: flex; background: var(--card); border-left: 1px solid var(--border); box-shadow: var(--shadow); }
    .panel.full { width: 100vw; }
    .panel.collapsed { width: 48px; }
    .panel.collapsed .main { display: none; }
    .ribbon { width: 48px; display: flex; flex-direction: column; gap: 6px; padding: 8px 4px; border-right: 1px solid var(--border); }
    .ribbon button { border: 0; background: transparent; border-radius: 8px; padding: 8px 0; }
    .ribbon button.active { background: rgba(37, 99, 235, 0.12); color: var(--accent); }
    .main { flex: 1; display: flex; flex-direction: column; min-width: 0; }
    .header { display: flex; align-items: center; justify-content: space-between; padding: 12px 14px; border-bottom: 1px solid var(--border); }
    .title { font-weight: 700; }
    .actions { display: flex; gap: 6px; align-items: center; }
    .content { flex: 1; overflow-y: auto; }
    .section { display: flex; flex-direction: column; gap: 10px; padding: 14px; }
    .row { display: flex; align-items: center; gap: 8px; }
    .grow { flex: 1; min-width: 0; }
    .wide { width: 100%; }
    .center { text-align: center; }
    .muted { color: var(--muted); font-size: 13px; }
    .muted-sm { color: var(--muted); font-size: 12px; }
    .divider { height: 1px; background: var(--border); margin: 6px 0; }
    .gate-title { font-weight: 700; font-size: 16px; margin-bottom: 4px; }
    .btn { border-radius: 10px; border: 1px solid var(--border); padding: 8px 12px; background: #fff; }
    .btn-primary { background: var(--accent); color: #fff; border-color: var(--accent); }
    .btn-outline { background: transparent; }
    .btn-danger { background: #fff; color: var(--danger); border-color: rgba(220, 38, 38, 0.35); }
    .btn-send { background: var(--accent); color: #fff; border-radius: 999px; padding: 6px 10px; }
    .btn-pill { border: 1px solid var(--border); border-radius: 999px; background: #fff; padding: 0 8px; }
    .header-btn { border: 0; background: transparent; padding: 4px 6px; border-radius: 6px; }
    .input, .textarea { width: 100%; border: 1px solid var(--border); border-radius: 10px; padding: 8px 10px; font: inherit; }
    .textarea { border: 0; resize: vertical; }
    .box { border: 1px solid var(--border); border-radius: 12px; background: #fff; }
    .box-body { padding: 10px 12px; }
    .box-header { padding: 10px 12px; border-bottom: 1px solid var(--border); }
    .box-footer { border-top: 1px solid var(--border); }
    .box-title { font-weight: 600; font-size: 13px; }
    .box-error { background: rgba(220, 38, 38, 0.06); color: var(--danger); border-color: rgba(220, 38, 38, 0.25); }
    .box-files, .box-questions { background: rgba(37, 99, 235, 0.03); }
    .box-files > button, .box-questions > button { border: 0; background: transparent; text-align: left; }
    .status-banner { margin: 10px 14px 0; background: rgba(37, 99, 235, 0.05); }
    .banner-title { font-weight: 600; font-size: 13px; }
    .spinner { width: 16px; height: 16px; border-radius: 50%; border: 2px solid rgba(37, 99, 235, 0.2); border-top-color: var(--accent); animation: spin 0.8s linear infinite; }
    @keyframes spin { to { transform: rotate(360deg); } }
    .status { font-size: 11px; padding: 2px 8px; border-radius: 999px; text-transform: capitalize; }
    .status-completed { background: rgba(16, 185, 129, 0.12); color: #059669; }
    .status-failed { background: rgba(220, 38, 38, 0.12); color: var(--danger); }
    .status-processing { background: rgba(37, 99, 235, 0.12); color: var(--accent); }
    .status-pending { background: rgba(234, 179, 8, 0.14); color: #a16207; }
    .status-default { background: rgba(100, 116, 139, 0.12); color: var(--muted); }
    .tag { display: inline-flex; align-items: center; gap: 4px; font-size: 12px; padding: 2px 8px; border-radius: 999px; }
    .badge-blue { background: rgba(37, 99, 235, 0.12); color: var(--accent); }
    .badge-green { background: rgba(16, 185, 129, 0.12); color: #059669; }
    .badge-purple { background: rgba(147, 51, 234, 0.12); color: #7e22ce; }
    .badge-gray { background: rgba(100, 116, 139, 0.12); color: var(--muted); }
    .scroll { max-height: 260px; overflow-y: auto; }
    .schema-item, .history-item { display: flex; width: 100%; text-align: left; gap: 8px; border: 1px solid var(--border); border-radius: 10px; background: #fff; padding: 8px 10px; margin-bottom: 6px; }
    .history-item { flex-direction: column; }
    .history-title { font-weight: 600; font-size: 13px; }
    .extract { border: 1px solid var(--border); border-radius: 10px; padding: 8px; margin-bottom: 6px; cursor: pointer; }
    .extract.selected { border-color: var(--accent); background: rgba(37, 99, 235, 0.04); }
    .code { font-family: ui-monospace, SFMono-Regular, Menlo, monospace; font-size: 12px; white-space: pre-wrap; word-break: break-word; }
    .question { display: block; margin-top: 6px; }
    .footer { margin: 0 14px 14px; }
    .copy { border: 1px solid var(--border); border-radius: 8px; background: #fff; padding: 4px 10px; }
    .copy.copied { color: #059669; border-color: rgba(16, 185, 129, 0.4); }
  </style>
</head>
<body>
  <div id="ctx-root">{{ snap.view.markup|safe }}</div>
  <div class="muted-sm" style="padding: 12px;">ContextOS panel v{{ app_version }}</div>
  <script>
  const root = document.getElementById('ctx-root');
  let generation = {{ snap.generation|tojson }};
  let revision = {{ snap.view.revision|tojson }};
  let queue = Promise.resolve();
  function apply(data) {
    if (!data || data.changed === false) {
      return;
    }
    root.innerHTML = data.markup;
    generation = data.generation;
    revision = data.revision;
    bindControls();
  }
  function refresh(force) {
    const url = force ? 'panel' : 'panel?revision=' + encodeURIComponent(revision);
    return fetch(url).then((r) => r.json()).then(apply);
  }
  function send(controlId, value) {
    queue = queue.then(() => fetch('events/' + encodeURIComponent(controlId), {
      method: 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: JSON.stringify({ value: value, generation: generation }),
    }).then((r) => (r.status === 409 ? refresh(true) : r.json().then(apply))))
      .catch((err) => console.warn('ContextOS event failed', err));
    return queue;
  }
  function copyText(selector) {
    const target = root.querySelector(selector);
    if (target && navigator.clipboard) {
      navigator.clipboard.writeText(target.innerText).catch((err) => console.warn('Copy failed', err));
    }
  }
  function bindControls() {
    root.querySelectorAll('[data-control]').forEach((el) => {
      const eventName = el.dataset.event || 'click';
      el.addEventListener(eventName, (event) => {
        if (eventName === 'click') {
          event.preventDefault();
          event.stopPropagation();
        }
        let value = null;
        if (el.dataset.valueFrom) {
          const source = root.querySelector(el.dataset.valueFrom);
          value = source ? source.value : '';
        } else if (eventName !== 'click') {
          value = el.value;
        }
        if (el.dataset.copyTarget) {
          copyText(el.dataset.copyTarget);
        }
        send(el.dataset.control, value);
      });
      if (el.dataset.enterControl) {
        el.addEventListener('keydown', (event) => {
          if (event.key === 'Enter') {
            event.preventDefault();
            send(el.dataset.enterControl, null);
          }
        });
      }
    });
  }
  bindControls();
  setInterval(() => {
    queue = queue.then(() => refresh(false)).catch((err) => console.warn('ContextOS refresh failed', err));
  }, 1000);
  </script>
</body>
</html>
"""
