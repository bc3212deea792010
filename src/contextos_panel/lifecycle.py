from __future__ import annotations
import asyncio
import logging
from typing import Any, Callable, Optional
from . import __version__ as APP_VERSION
from .api_client import ContextOSClient
from .errors import AuthError, PanelError, PromptTimeoutError, ValidationError
from .models import PromptDraft
from .state import Phase, StateStore
from .telemetry import Timer, log_event
logger = logging.getLogger(__name__)
ClientFactory = Callable[[str], ContextOSClient]
TIMEOUT_MESSAGE = "Prompt processing timed out"
class PromptLifecycleController:
    """Drives one prompt through submit, bounded polling and the optional Q&A round-trip.

    All methods run on the event loop that owns the store. Network calls are
    pushed to a worker thread and their results applied back on the loop, so
    every state mutation stays on one thread. Each poll cycle is a task keyed
    by prompt id; a newer cycle, a reset or a rehydration cancels it, and a
    response for a prompt that is no longer current is dropped.
    """
    def __init__(
        self,
        store: StateStore,
        client_factory: ClientFactory,
        *,
        poll_interval: float = 2.0,
        max_attempts: int = 30,
    ) -> None:
        self.store = store
        self.client_factory = client_factory
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._poll_task: Optional[asyncio.Task] = None
        self._poll_prompt_id: Optional[str] = None
    @property
    def polling_prompt_id(self) -> Optional[str]:
        if self._poll_task is None or self._poll_task.done():
            return None
        return self._poll_prompt_id
    def _client(self) -> ContextOSClient:
        return self.client_factory(self.store.state.api_key)
    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(fn, *args)
    def _is_stale(self, prompt_id: str) -> bool:
        return self.store.state.current_prompt_id != prompt_id
    def _handle_failure(self, exc: PanelError, *, clear_prompt: bool = False) -> None:
        self.store.fail(exc.message, clear_prompt=clear_prompt)
        if isinstance(exc, AuthError):
            self.store.deauthenticate(exc.message)
    def _check_preconditions(self) -> None:
        s = self.store.state
        if not s.original_prompt.strip():
            raise ValidationError("Please enter a prompt")
        if not s.is_authenticated or not s.api_key.strip():
            raise AuthError("API key is not configured")
        if not s.selected_schemas:
            raise ValidationError("Please select at least one context")
    async def load_schemas(self) -> bool:
        if not self.store.state.is_authenticated:
            return False
        self.store.begin_schema_load()
        try:
            schemas = await self._call(self._client().list_schemas)
        except PanelError as exc:
            self.store.fail_schema_load(exc.message)
            if isinstance(exc, AuthError):
                self.store.deauthenticate(exc.message)
            return False
        logger.info("Loaded %d published schemas", len(schemas))
        self.store.set_schemas(schemas)
        return True
    async def submit(self) -> Optional[asyncio.Task]:
        s = self.store.state
        if s.loading:
            logger.info("Submit ignored: a prompt is already in flight")
            return None
        try:
            self._check_preconditions()
        except AuthError as exc:
            self.store.deauthenticate(exc.message)
            return None
        except ValidationError as exc:
            self.store.set_error(exc.message)
            return None
        draft = PromptDraft(text=s.original_prompt, schema_ids=list(s.selected_schemas))
        self.cancel()
        self.store.begin_submission()
        pending = self.store.state.current_prompt
        timer = Timer()
        try:
            prompt_id = await self._call(self._client().submit_prompt, draft)
        except PanelError as exc:
            logger.warning("Prompt submission failed: %s", exc.message)
            if self.store.state.current_prompt is not pending:
                return None
            self._handle_failure(exc, clear_prompt=True)
            log_event("prompt", action="submit", app_version=APP_VERSION, duration_ms=timer.ms(), success=False, error=exc.message)
            return None
        log_event(
            "prompt",
            action="submit",
            app_version=APP_VERSION,
            prompt_id=prompt_id,
            duration_ms=timer.ms(),
            payload={"schema_count": len(draft.schema_ids), "prompt_chars": len(draft.text)},
        )
        if self.store.state.current_prompt is not pending:
            logger.info("Discarding submit response for prompt %s: the form was reset", prompt_id)
            return None
        self.store.attach_prompt_id(prompt_id)
        return self.poll(prompt_id)
    def poll(self, prompt_id: str) -> asyncio.Task:
        self.cancel()
        self._poll_prompt_id = prompt_id
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop(prompt_id))
        return self._poll_task
    def cancel(self) -> None:
        task = self._poll_task
        if task is not None and not task.done():
            logger.info("Cancelling poll cycle for prompt %s", self._poll_prompt_id)
            task.cancel()
        self._poll_task = None
        self._poll_prompt_id = None
    async def _poll_loop(self, prompt_id: str) -> Optional[Phase]:
        timer = Timer()
        client = self._client()
        for attempt in range(1, self.max_attempts + 1):
            try:
                prompt = await self._call(client.retrieve_prompt, prompt_id)
            except PanelError as exc:
                if self._is_stale(prompt_id):
                    return None
                logger.warning("Polling prompt %s failed on attempt %d: %s", prompt_id, attempt, exc.message)
                self._handle_failure(exc)
                log_event("prompt", action="poll", app_version=APP_VERSION, prompt_id=prompt_id, duration_ms=timer.ms(), success=False, error=exc.message)
                return Phase.FAILED
            if self._is_stale(prompt_id):
                logger.info("Discarding poll response for stale prompt %s", prompt_id)
                return None
            phase = self.store.apply_poll_result(prompt)
            if phase != Phase.POLLING:
                log_event(
                    "prompt",
                    action=phase.value,
                    app_version=APP_VERSION,
                    prompt_id=prompt_id,
                    duration_ms=timer.ms(),
                    success=phase in (Phase.COMPLETED, Phase.AWAITING_ANSWERS),
                    payload={"attempts": attempt, "questions": len(prompt.questions_answers)},
                )
                return phase
            if attempt < self.max_attempts:
                await asyncio.sleep(self.poll_interval)
        exc = PromptTimeoutError(TIMEOUT_MESSAGE)
        logger.warning("Prompt %s still processing after %d attempts", prompt_id, self.max_attempts)
        self.store.time_out(exc.message)
        log_event("prompt", action="timeout", app_version=APP_VERSION, prompt_id=prompt_id, duration_ms=timer.ms(), success=False, error=exc.message)
        return Phase.TIMED_OUT
    async def submit_answers(self) -> Optional[asyncio.Task]:
        s = self.store.state
        prompt_id = s.current_prompt_id
        if not prompt_id or s.submitting_answers or not s.questions:
            return None
        answers = tuple(s.questions)
        self.store.begin_answer_submission()
        try:
            await self._call(self._client().submit_answers, prompt_id, answers)
        except PanelError as exc:
            logger.warning("Submitting answers for prompt %s failed: %s", prompt_id, exc.message)
            if self._is_stale(prompt_id):
                return None
            self.store.fail_answer_submission(exc.message)
            if isinstance(exc, AuthError):
                self.store.deauthenticate(exc.message)
            return None
        if self._is_stale(prompt_id):
            logger.info("Discarding answers response for stale prompt %s", prompt_id)
            return None
        log_event(
            "prompt",
            action="answers",
            app_version=APP_VERSION,
            prompt_id=prompt_id,
            payload={"answered": sum(1 for qa in answers if qa.answer.strip()), "total": len(answers)},
        )
        self.store.record_submitted_answers(answers)
        return self.poll(prompt_id)
