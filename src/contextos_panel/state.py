from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from .credentials import CredentialStore
from .models import FileContextExtract, Prompt, PromptStatus, QuestionAnswer, Schema
logger = logging.getLogger(__name__)
class View(str, Enum):
    FETCH = "fetch"
    HISTORY = "history"
    SETTINGS = "settings"
class Phase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    AWAITING_ANSWERS = "awaiting_answers"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
@dataclass
class PanelState:
    # session
    is_authenticated: bool = False
    api_key: str = ""
    current_view: View = View.FETCH
    error: Optional[str] = None
    loading: bool = False
    # panel chrome
    is_fullscreen: bool = False
    is_collapsed: bool = False
    copied_prompt: bool = False
    # prompt lifecycle
    phase: Phase = Phase.IDLE
    original_prompt: str = ""
    enhanced_prompt: str = ""
    current_prompt: Optional[Prompt] = None
    # schemas
    schemas: List[Schema] = field(default_factory=list)
    schemas_loading: bool = False
    selected_schemas: List[str] = field(default_factory=list)
    show_context_selection: bool = False
    context_search_term: str = ""
    # history
    prompt_history: List[Prompt] = field(default_factory=list)
    history_loading: bool = False
    history_search: str = ""
    # Q&A
    questions: List[QuestionAnswer] = field(default_factory=list)
    submitted_answers: Tuple[QuestionAnswer, ...] = ()
    submitting_answers: bool = False
    show_questions: bool = False
    # file contexts
    file_contexts: List[FileContextExtract] = field(default_factory=list)
    selected_file_extracts: List[str] = field(default_factory=list)
    show_file_context: bool = False
    revision: int = 0
    @property
    def current_prompt_id(self) -> Optional[str]:
        return self.current_prompt.id if self.current_prompt else None
    @property
    def selected_schema_objects(self) -> List[Schema]:
        return [s for s in self.schemas if s.id in self.selected_schemas]
    @property
    def filtered_schemas(self) -> List[Schema]:
        return [s for s in self.schemas if s.matches(self.context_search_term)]
    @property
    def can_submit(self) -> bool:
        return not self.loading and bool(self.original_prompt.strip()) and bool(self.selected_schemas)
class StateStore:
    """Owns the one mutable PanelState; every change goes through a named action."""
    def __init__(self, credentials: Optional[CredentialStore] = None, state: Optional[PanelState] = None) -> None:
        self.credentials = credentials
        self.state = state or PanelState()
    @classmethod
    def from_credentials(cls, credentials: CredentialStore) -> "StateStore":
        api_key = credentials.load()
        return cls(credentials, PanelState(api_key=api_key, is_authenticated=bool(api_key.strip())))
    def _touch(self) -> PanelState:
        self.state.revision += 1
        return self.state
    # session
    def connect(self, api_key: str) -> bool:
        s = self.state
        s.api_key = (api_key or "").strip()
        s.is_authenticated = bool(s.api_key)
        s.error = None
        if s.is_authenticated and self.credentials is not None:
            self.credentials.save(s.api_key)
        self._touch()
        return s.is_authenticated
    def save_settings(self, api_key: str) -> bool:
        authenticated = self.connect(api_key)
        self.state.current_view = View.FETCH
        return authenticated
    def cancel_settings(self) -> None:
        self.state.current_view = View.FETCH
        self._touch()
    def disconnect(self) -> None:
        if self.credentials is not None:
            self.credentials.clear()
        s = self.state
        s.api_key = ""
        s.is_authenticated = False
        s.schemas = []
        s.current_prompt = None
        s.enhanced_prompt = ""
        s.questions = []
        s.submitting_answers = False
        s.loading = False
        s.phase = Phase.IDLE
        self._touch()
    def deauthenticate(self, message: Optional[str] = None) -> None:
        logger.info("Credential rejected, clearing stored API key")
        if self.credentials is not None:
            self.credentials.clear()
        s = self.state
        s.api_key = ""
        s.is_authenticated = False
        if message:
            s.error = message
        self._touch()
    def navigate(self, view: View) -> None:
        s = self.state
        s.is_collapsed = False
        s.current_view = View(view)
        self._touch()
    def set_error(self, message: str) -> None:
        self.state.error = message
        self._touch()
    def dismiss_error(self) -> None:
        self.state.error = None
        self._touch()
    # panel chrome
    def toggle_fullscreen(self) -> None:
        s = self.state
        s.is_fullscreen = not s.is_fullscreen
        if s.is_fullscreen:
            s.is_collapsed = False
        self._touch()
    def toggle_collapse(self) -> None:
        self.state.is_collapsed = not self.state.is_collapsed
        self._touch()
    def close_panel(self) -> None:
        self.state.is_collapsed = True
        self._touch()
    def mark_copied(self) -> None:
        self.state.copied_prompt = True
        self._touch()
    def clear_copied(self) -> None:
        self.state.copied_prompt = False
        self._touch()
    # prompt form
    # typed field edits leave the revision alone; the client already shows them
    def set_prompt_text(self, text: str) -> None:
        self.state.original_prompt = text or ""
    def toggle_context_selection(self) -> None:
        self.state.show_context_selection = not self.state.show_context_selection
        self._touch()
    def close_context_selection(self) -> None:
        self.state.show_context_selection = False
        self.state.context_search_term = ""
        self._touch()
    def set_context_search(self, term: str) -> None:
        self.state.context_search_term = term or ""
        self._touch()
    def add_schema(self, schema_id: str) -> None:
        s = self.state
        if schema_id not in s.selected_schemas:
            s.selected_schemas.append(schema_id)
        s.show_context_selection = False
        s.context_search_term = ""
        self._touch()
    def remove_schema(self, schema_id: str) -> None:
        self.state.selected_schemas = [sid for sid in self.state.selected_schemas if sid != schema_id]
        self._touch()
    def begin_schema_load(self) -> None:
        self.state.schemas_loading = True
        self._touch()
    def set_schemas(self, schemas: Sequence[Schema]) -> None:
        self.state.schemas = list(schemas)
        self.state.schemas_loading = False
        self.state.error = None
        self._touch()
    def fail_schema_load(self, message: str) -> None:
        self.state.schemas_loading = False
        self.state.error = message
        self._touch()
    def reset_prompt(self) -> None:
        s = self.state
        s.original_prompt = ""
        s.enhanced_prompt = ""
        s.current_prompt = None
        s.questions = []
        s.submitted_answers = ()
        s.selected_schemas = []
        s.error = None
        s.file_contexts = []
        s.selected_file_extracts = []
        s.show_file_context = False
        s.show_questions = False
        s.submitting_answers = False
        s.loading = False
        s.phase = Phase.IDLE
        self._touch()
    # file contexts
    def toggle_file_context_panel(self) -> None:
        self.state.show_file_context = not self.state.show_file_context
        self._touch()
    def toggle_extract(self, extract_id: str) -> None:
        s = self.state
        for index, extract in enumerate(s.file_contexts):
            if extract.id != extract_id:
                continue
            updated = replace(extract, selected=not extract.selected)
            s.file_contexts[index] = updated
            if updated.selected:
                if updated.content not in s.selected_file_extracts:
                    s.selected_file_extracts.append(updated.content)
            else:
                still_selected = any(e.selected and e.content == updated.content for e in s.file_contexts)
                if not still_selected:
                    s.selected_file_extracts = [c for c in s.selected_file_extracts if c != updated.content]
            self._touch()
            return
    def _replace_extracts(self, extracts: List[FileContextExtract]) -> None:
        self.state.file_contexts = extracts
        self.state.selected_file_extracts = []
    # Q&A
    def toggle_questions(self) -> None:
        self.state.show_questions = not self.state.show_questions
        self._touch()
    def skip_questions(self) -> None:
        s = self.state
        s.show_questions = False
        if s.phase == Phase.AWAITING_ANSWERS:
            s.phase = Phase.COMPLETED
        self._touch()
    def set_answer(self, index: int, answer: str) -> None:
        s = self.state
        if 0 <= index < len(s.questions):
            s.questions[index] = replace(s.questions[index], answer=answer or "")
    def begin_answer_submission(self) -> None:
        self.state.submitting_answers = True
        self._touch()
    def record_submitted_answers(self, answers: Sequence[QuestionAnswer]) -> None:
        s = self.state
        s.submitted_answers = tuple(answers)
        s.show_questions = False
        s.submitting_answers = False
        s.error = None
        s.loading = True
        s.phase = Phase.POLLING
        self._touch()
    def fail_answer_submission(self, message: str) -> None:
        s = self.state
        s.submitting_answers = False
        s.error = message
        self._touch()
    # lifecycle transitions
    def begin_submission(self) -> None:
        s = self.state
        s.loading = True
        s.error = None
        s.phase = Phase.SUBMITTING
        s.current_prompt = Prompt(status=PromptStatus.PENDING)
        s.enhanced_prompt = ""
        s.questions = []
        s.submitted_answers = ()
        s.submitting_answers = False
        s.show_questions = False
        self._replace_extracts([])
        self._touch()
    def attach_prompt_id(self, prompt_id: str) -> None:
        s = self.state
        s.current_prompt = Prompt(status=PromptStatus.PENDING, id=prompt_id, original_prompt=s.original_prompt.strip())
        s.phase = Phase.POLLING
        self._touch()
    def apply_poll_result(self, prompt: Prompt) -> Phase:
        s = self.state
        s.current_prompt = prompt
        self._replace_extracts(prompt.extracts())
        if prompt.status == PromptStatus.COMPLETED:
            s.enhanced_prompt = prompt.enriched_prompt
            s.loading = False
            if prompt.questions_answers:
                s.questions = list(prompt.questions_answers)
            if prompt.questions_answers and not s.submitted_answers:
                s.show_questions = True
                s.phase = Phase.AWAITING_ANSWERS
            else:
                s.phase = Phase.COMPLETED
        elif prompt.status == PromptStatus.FAILED:
            s.loading = False
            s.error = "Prompt processing failed"
            s.phase = Phase.FAILED
        else:
            s.phase = Phase.POLLING
        self._touch()
        return s.phase
    def fail(self, message: str, *, clear_prompt: bool = False) -> None:
        s = self.state
        s.error = message
        s.loading = False
        s.submitting_answers = False
        s.phase = Phase.FAILED
        if clear_prompt:
            s.current_prompt = None
        self._touch()
    def time_out(self, message: str) -> None:
        s = self.state
        s.error = message
        s.loading = False
        s.phase = Phase.TIMED_OUT
        self._touch()
    # history
    def set_history_search(self, term: str) -> None:
        self.state.history_search = term or ""
    def begin_history_load(self) -> None:
        self.state.history_loading = True
        self._touch()
    def set_history(self, prompts: Sequence[Prompt]) -> None:
        self.state.prompt_history = list(prompts)
        self.state.history_loading = False
        self._touch()
    def open_history_entry(self, entry_id: str) -> bool:
        s = self.state
        entry = next((p for p in s.prompt_history if str(p.id) == str(entry_id)), None)
        if entry is None:
            return False
        s.original_prompt = entry.original_prompt
        s.current_prompt = entry
        s.enhanced_prompt = entry.enriched_prompt
        s.selected_schemas = list(entry.schemas_used)
        s.questions = list(entry.questions_answers)
        s.submitted_answers = tuple(entry.questions_answers)
        self._replace_extracts(entry.extracts())
        s.show_questions = False
        s.show_file_context = False
        s.submitting_answers = False
        s.loading = False
        s.error = None
        s.phase = Phase.COMPLETED
        s.current_view = View.FETCH
        self._touch()
        return True
