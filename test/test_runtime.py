"""Tests for PanelRuntime: the loop thread, snapshots and event dispatch."""

import threading
import time

import pytest

from contextos_panel.rendering import StaleEventError
from contextos_panel.runtime import PanelRuntime
from contextos_panel.state import Phase, View
from fakes import make_prompt


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def runtime(panel_config, store, client_factory):
    rt = PanelRuntime(panel_config, store=store, client_factory=client_factory)
    rt.start()
    assert _wait_for(lambda: bool(rt.store.state.schemas))
    yield rt
    rt.stop()


def _dispatch(rt, control_id, value=None, generation=None):
    return rt.call(lambda: rt.dispatch(control_id, value, generation))


class TestSnapshots:
    def test_startup_loads_schemas(self, runtime, fake_client):
        assert fake_client.count("list_schemas") == 1
        assert [s.id for s in runtime.store.state.schemas] == ["s1", "s2"]

    def test_each_snapshot_rebinds_with_new_generation(self, runtime):
        first = runtime.call(runtime.snapshot)
        second = runtime.call(runtime.snapshot)

        assert second.generation == first.generation + 1
        assert len(runtime.table) == len(second.view.controls)

    def test_refresh_is_empty_when_revision_unchanged(self, runtime):
        snap = runtime.call(runtime.snapshot)

        assert runtime.call(lambda: runtime.refresh(snap.view.revision)) is None
        assert runtime.call(lambda: runtime.refresh(snap.view.revision - 1)) is not None

    def test_snapshot_json_shape(self, runtime):
        payload = runtime.call(runtime.snapshot).to_json()

        assert set(payload) == {"changed", "markup", "revision", "loading", "generation"}


class TestDispatch:
    def test_click_returns_fresh_snapshot(self, runtime):
        snap = runtime.call(runtime.snapshot)

        result = _dispatch(runtime, "toggle-context", generation=snap.generation)

        assert runtime.store.state.show_context_selection is True
        assert "Select Contexts" in result.view.markup
        assert result.generation == snap.generation + 1

    def test_stale_generation_is_rejected(self, runtime):
        old = runtime.call(runtime.snapshot)
        runtime.call(runtime.snapshot)

        with pytest.raises(StaleEventError):
            _dispatch(runtime, "toggle-context", generation=old.generation)
        assert runtime.store.state.show_context_selection is False

    def test_unknown_control_is_rejected(self, runtime):
        runtime.call(runtime.snapshot)

        with pytest.raises(StaleEventError):
            _dispatch(runtime, "add-schema:nope")

    def test_typed_input_returns_nothing(self, runtime):
        snap = runtime.call(runtime.snapshot)

        assert _dispatch(runtime, "prompt-text", "Summarize Q3", snap.generation) is None
        assert runtime.store.state.original_prompt == "Summarize Q3"

    def test_nav_to_history_loads_history(self, runtime, fake_client):
        fake_client.history = [make_prompt("h-1", original="Q3")]
        runtime.call(runtime.snapshot)

        _dispatch(runtime, "nav:history")

        assert runtime.store.state.current_view == View.HISTORY
        assert _wait_for(lambda: len(runtime.store.state.prompt_history) == 1)

    def test_disconnect_clears_credential(self, runtime, credentials):
        runtime.call(runtime.snapshot)
        _dispatch(runtime, "nav:settings")

        _dispatch(runtime, "disconnect")

        assert runtime.store.state.is_authenticated is False
        assert credentials.load() == ""


class TestFlow:
    def _submit(self, runtime):
        runtime.call(runtime.snapshot)
        _dispatch(runtime, "prompt-text", "Summarize Q3 results")
        _dispatch(runtime, "toggle-context")
        _dispatch(runtime, "add-schema:s1")
        return _dispatch(runtime, "submit")

    def test_submit_polls_to_completion(self, runtime, fake_client):
        fake_client.retrieve_responses = [make_prompt(enriched="Summarize Q3 results for Acme...")]

        self._submit(runtime)

        assert _wait_for(lambda: runtime.store.state.phase == Phase.COMPLETED)
        snap = runtime.call(runtime.snapshot)
        assert "ADDITIONAL CONTEXT: Business Name: Acme; Key Goals: grow revenue" in snap.view.markup

    def test_copy_feedback_clears_itself(self, runtime, fake_client):
        fake_client.retrieve_responses = [make_prompt(enriched="Done")]
        self._submit(runtime)
        assert _wait_for(lambda: runtime.store.state.phase == Phase.COMPLETED)
        runtime.call(runtime.snapshot)

        result = _dispatch(runtime, "copy")

        assert "Copied!" in result.view.markup
        assert _wait_for(lambda: runtime.store.state.copied_prompt is False)

    def test_new_prompt_cancels_poll(self, runtime, fake_client):
        fake_client.retrieve_gate = threading.Event()
        self._submit(runtime)
        assert _wait_for(lambda: runtime.lifecycle.polling_prompt_id == "p-1")

        _dispatch(runtime, "new-prompt")
        fake_client.retrieve_gate.set()

        assert runtime.lifecycle.polling_prompt_id is None
        assert runtime.store.state.phase == Phase.IDLE
        time.sleep(0.05)
        assert runtime.store.state.enhanced_prompt == ""
