"""Tests for StateStore actions and the invariants they maintain."""

from contextos_panel.composer import compose_state
from contextos_panel.models import PromptStatus, QuestionAnswer
from contextos_panel.state import Phase, View
from fakes import make_prompt, make_schema
from conftest import TEST_API_KEY


class TestSession:
    """Connect, disconnect and credential persistence."""

    def test_store_starts_authenticated_from_saved_key(self, store):
        assert store.state.is_authenticated
        assert store.state.api_key == TEST_API_KEY

    def test_connect_persists_trimmed_key(self, unauthenticated_store):
        assert unauthenticated_store.connect("  new-key  ") is True

        assert unauthenticated_store.state.api_key == "new-key"
        assert unauthenticated_store.credentials.load() == "new-key"

    def test_connect_with_blank_key_stays_unauthenticated(self, unauthenticated_store):
        assert unauthenticated_store.connect("   ") is False
        assert not unauthenticated_store.state.is_authenticated

    def test_disconnect_clears_persisted_credential(self, store, credentials):
        store.disconnect()

        assert not store.state.is_authenticated
        assert store.state.api_key == ""
        assert credentials.load() == ""

    def test_deauthenticate_keeps_message(self, store, credentials):
        store.deauthenticate("Invalid API key")

        assert store.state.error == "Invalid API key"
        assert credentials.load() == ""

    def test_save_settings_returns_to_fetch_view(self, store):
        store.navigate(View.SETTINGS)
        store.save_settings("other-key")

        assert store.state.current_view == View.FETCH
        assert store.state.api_key == "other-key"


class TestRevision:
    """Typed input is not a re-render trigger; everything else is."""

    def test_typed_fields_leave_revision_alone(self, store):
        store.state.questions = [QuestionAnswer("Tone?")]
        before = store.state.revision

        store.set_prompt_text("hello")
        store.set_answer(0, "formal")
        store.set_history_search("q3")

        assert store.state.revision == before
        assert store.state.original_prompt == "hello"
        assert store.state.questions[0].answer == "formal"

    def test_actions_bump_revision(self, store):
        before = store.state.revision

        store.toggle_fullscreen()
        store.add_schema("s1")

        assert store.state.revision == before + 2


class TestSchemaSelection:
    def test_add_schema_dedupes_and_closes_picker(self, store):
        store.toggle_context_selection()
        store.set_context_search("acme")

        store.add_schema("s1")
        store.add_schema("s1")

        assert store.state.selected_schemas == ["s1"]
        assert store.state.show_context_selection is False
        assert store.state.context_search_term == ""

    def test_remove_schema(self, store):
        store.add_schema("s1")
        store.add_schema("s2")
        store.remove_schema("s1")

        assert store.state.selected_schemas == ["s2"]

    def test_filtered_schemas_match_name_company_or_type(self, store):
        store.set_schemas([make_schema("s1", "Acme"), make_schema("s2", "Globex")])
        store.set_context_search("glob")

        assert [s.id for s in store.state.filtered_schemas] == ["s2"]


class TestFileExtracts:
    """Selected extract content mirrors the selected flags exactly once."""

    def _load(self, store):
        store.state.schemas = [make_schema()]
        store.state.selected_schemas = ["s1"]
        store.apply_poll_result(
            make_prompt(enriched="Enhanced", context=(("deck.pdf", "Revenue grew 12%"), ("notes.md", "Churn fell")))
        )

    def test_extract_ids_are_prompt_scoped(self, store):
        self._load(store)

        assert [e.id for e in store.state.file_contexts] == ["p-1_0", "p-1_1"]

    def test_select_adds_content_once(self, store):
        self._load(store)

        store.toggle_extract("p-1_0")

        composite = compose_state(store.state)
        assert store.state.selected_file_extracts == ["Revenue grew 12%"]
        assert composite.count("Revenue grew 12%") == 1

    def test_deselect_removes_content(self, store):
        self._load(store)

        store.toggle_extract("p-1_0")
        store.toggle_extract("p-1_0")

        assert store.state.selected_file_extracts == []
        assert "SUPPLEMENTARY EXTRACTS" not in compose_state(store.state)

    def test_duplicate_content_is_not_duplicated(self, store):
        store.apply_poll_result(make_prompt(context=(("a", "same"), ("b", "same"))))

        store.toggle_extract("p-1_0")
        store.toggle_extract("p-1_1")

        assert store.state.selected_file_extracts == ["same"]

        store.toggle_extract("p-1_0")

        assert store.state.selected_file_extracts == ["same"]

        store.toggle_extract("p-1_1")

        assert store.state.selected_file_extracts == []

    def test_unknown_extract_is_ignored(self, store):
        self._load(store)
        before = store.state.revision

        store.toggle_extract("nope")

        assert store.state.revision == before
        assert store.state.selected_file_extracts == []


class TestPollResults:
    def test_completed_with_questions_awaits_answers(self, store):
        phase = store.apply_poll_result(make_prompt(enriched="E", questions=("Tone?",)))

        assert phase == Phase.AWAITING_ANSWERS
        assert store.state.show_questions is True
        assert store.state.loading is False

    def test_completed_after_answers_goes_straight_to_completed(self, store):
        store.state.submitted_answers = (QuestionAnswer("Tone?", "Formal"),)

        phase = store.apply_poll_result(make_prompt(enriched="E2", questions=("Tone?",)))

        assert phase == Phase.COMPLETED
        assert store.state.show_questions is False

    def test_failed_status_is_terminal(self, store):
        phase = store.apply_poll_result(make_prompt(status=PromptStatus.FAILED))

        assert phase == Phase.FAILED
        assert store.state.error == "Prompt processing failed"

    def test_processing_keeps_polling(self, store):
        store.begin_submission()

        assert store.apply_poll_result(make_prompt(status=PromptStatus.PROCESSING)) == Phase.POLLING
        assert store.state.loading is True

    def test_skip_questions_completes(self, store):
        store.apply_poll_result(make_prompt(enriched="E", questions=("Tone?",)))

        store.skip_questions()

        assert store.state.phase == Phase.COMPLETED
        assert store.state.show_questions is False


class TestHistoryRehydration:
    def test_open_entry_populates_form_and_clears_extracts(self, store):
        entry = make_prompt(
            "h-9",
            original="Summarize Q3 results",
            enriched="Summarize Q3 results for Acme...",
            schemas_used=("s1",),
            questions=(QuestionAnswer("Tone?", "Formal"),),
            context=(("deck.pdf", "Revenue grew 12%"),),
        )
        store.apply_poll_result(make_prompt(context=(("old", "old extract"),)))
        store.toggle_extract("p-1_0")
        store.set_history([entry])
        store.navigate(View.HISTORY)

        assert store.open_history_entry("h-9") is True

        s = store.state
        assert s.original_prompt == entry.original_prompt
        assert s.enhanced_prompt == entry.enriched_prompt
        assert s.selected_schemas == list(entry.schemas_used)
        assert s.selected_file_extracts == []
        assert [e.id for e in s.file_contexts] == ["h-9_0"]
        assert s.submitted_answers == entry.questions_answers
        assert s.current_view == View.FETCH
        assert s.phase == Phase.COMPLETED

    def test_open_unknown_entry_changes_nothing(self, store):
        store.set_prompt_text("keep me")

        assert store.open_history_entry("missing") is False
        assert store.state.original_prompt == "keep me"


class TestReset:
    def test_reset_prompt_clears_lifecycle(self, store):
        store.add_schema("s1")
        store.set_prompt_text("x")
        store.begin_submission()

        store.reset_prompt()

        s = store.state
        assert (s.original_prompt, s.selected_schemas, s.current_prompt, s.loading) == ("", [], None, False)
        assert s.phase == Phase.IDLE
