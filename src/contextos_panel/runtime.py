from __future__ import annotations
import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from .config import PanelConfig
from .credentials import CredentialStore
from .history import HistoryController
from .lifecycle import ClientFactory, PromptLifecycleController
from .rendering import ActionFn, HandlerTable, RenderedView, ViewRenderer, bind
from .state import StateStore, View
logger = logging.getLogger(__name__)
@dataclass(frozen=True)
class Snapshot:
    view: RenderedView
    generation: int
    def to_json(self) -> dict:
        return {
            "changed": True,
            "markup": self.view.markup,
            "revision": self.view.revision,
            "loading": self.view.loading,
            "generation": self.generation,
        }
class PanelActions:
    """Named handlers the renderer's controls resolve to; each takes (arg, value)."""
    def __init__(self, runtime: "PanelRuntime") -> None:
        self.runtime = runtime
        self.store = runtime.store
        self.lifecycle = runtime.lifecycle
        self.history = runtime.history
        self._registry: Dict[str, ActionFn] = {
            "toggle-collapse": lambda arg, value: self.store.toggle_collapse(),
            "close": lambda arg, value: self.store.close_panel(),
            "fullscreen": lambda arg, value: self.store.toggle_fullscreen(),
            "nav": self.nav,
            "new-prompt": self.new_prompt,
            "connect": self.connect,
            "settings-save": self.settings_save,
            "settings-cancel": lambda arg, value: self.store.cancel_settings(),
            "disconnect": self.disconnect,
            "dismiss-error": lambda arg, value: self.store.dismiss_error(),
            "prompt-text": lambda arg, value: self.store.set_prompt_text(value or ""),
            "toggle-context": lambda arg, value: self.store.toggle_context_selection(),
            "close-context": lambda arg, value: self.store.close_context_selection(),
            "context-search": lambda arg, value: self.store.set_context_search(value or ""),
            "add-schema": lambda arg, value: self.store.add_schema(arg or ""),
            "remove-schema": lambda arg, value: self.store.remove_schema(arg or ""),
            "submit": lambda arg, value: self.lifecycle.submit(),
            "filectx-toggle": lambda arg, value: self.store.toggle_file_context_panel(),
            "toggle-extract": lambda arg, value: self.store.toggle_extract(arg or ""),
            "qa-toggle": lambda arg, value: self.store.toggle_questions(),
            "qa-submit": lambda arg, value: self.lifecycle.submit_answers(),
            "qa-skip": lambda arg, value: self.store.skip_questions(),
            "answer": self.answer,
            "history-search": lambda arg, value: self.store.set_history_search(value or ""),
            "history-refresh": lambda arg, value: self.history.load(),
            "open-history": lambda arg, value: self.history.open(arg or ""),
            "copy": self.copy,
        }
    def resolve(self, name: str) -> ActionFn:
        try:
            return self._registry[name]
        except KeyError:
            raise KeyError(f"No action registered for {name!r}") from None
    def nav(self, arg: Optional[str], value: Optional[str]) -> Optional[Awaitable[bool]]:
        view = View(arg or View.FETCH.value)
        self.store.navigate(view)
        if view == View.HISTORY and not self.store.state.history_loading:
            return self.history.load()
        return None
    def new_prompt(self, arg: Optional[str], value: Optional[str]) -> None:
        self.lifecycle.cancel()
        self.store.reset_prompt()
    def connect(self, arg: Optional[str], value: Optional[str]) -> Optional[Awaitable[bool]]:
        if self.store.connect(value or ""):
            return self.lifecycle.load_schemas()
        return None
    def settings_save(self, arg: Optional[str], value: Optional[str]) -> Optional[Awaitable[bool]]:
        if self.store.save_settings(value or ""):
            return self.lifecycle.load_schemas()
        return None
    def disconnect(self, arg: Optional[str], value: Optional[str]) -> None:
        self.lifecycle.cancel()
        self.store.disconnect()
    def answer(self, arg: Optional[str], value: Optional[str]) -> None:
        try:
            index = int(arg or "")
        except ValueError:
            return
        self.store.set_answer(index, value or "")
    def copy(self, arg: Optional[str], value: Optional[str]) -> None:
        self.store.mark_copied()
        loop = asyncio.get_running_loop()
        loop.call_later(self.runtime.config.copied_feedback_seconds, self.store.clear_copied)
class PanelRuntime:
    """Owns the event loop thread on which the store is mutated and rendered."""
    def __init__(
        self,
        config: Optional[PanelConfig] = None,
        *,
        store: Optional[StateStore] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.config = config or PanelConfig.from_env()
        self.store = store or StateStore.from_credentials(CredentialStore(self.config.credentials_path))
        self.client_factory = client_factory or self.config.client_for
        self.lifecycle = PromptLifecycleController(
            self.store,
            self.client_factory,
            poll_interval=self.config.poll_interval,
            max_attempts=self.config.max_poll_attempts,
        )
        self.history = HistoryController(self.store, self.client_factory, self.lifecycle)
        self.renderer = ViewRenderer()
        self.actions = PanelActions(self)
        self.table: Optional[HandlerTable] = None
        self._generation = 0
        self._background: Set[asyncio.Future] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
    # loop thread
    def start(self) -> None:
        if self._thread is not None:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="contextos-panel-loop", daemon=True)
        self._thread.start()
        logger.info("Panel runtime started")
        if self.store.state.is_authenticated:
            self.call_soon(self.startup)
    def stop(self) -> None:
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._loop.close()
        self._loop = None
        self._thread = None
    def call_soon(self, fn: Callable[[], Awaitable[Any]]) -> Future:
        if self._loop is None:
            raise RuntimeError("Panel runtime is not started")
        return asyncio.run_coroutine_threadsafe(fn(), self._loop)
    def call(self, fn: Callable[[], Awaitable[Any]], timeout: Optional[float] = 60.0) -> Any:
        return self.call_soon(fn).result(timeout)
    # work that runs on the loop
    async def startup(self) -> None:
        if self.store.state.is_authenticated:
            await self.lifecycle.load_schemas()
    def _track(self, awaitable: Awaitable[Any]) -> asyncio.Future:
        future = asyncio.ensure_future(awaitable)
        self._background.add(future)
        future.add_done_callback(self._background.discard)
        future.add_done_callback(self._log_background_failure)
        return future
    @staticmethod
    def _log_background_failure(future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Panel action failed", exc_info=exc)
    async def snapshot(self) -> Snapshot:
        view = self.renderer.render(self.store.state)
        self._generation += 1
        self.table = bind(view, self.actions.resolve, self._generation)
        return Snapshot(view, self._generation)
    async def refresh(self, revision: Optional[int] = None) -> Optional[Snapshot]:
        if revision is not None and self.table is not None and revision == self.store.state.revision:
            return None
        return await self.snapshot()
    async def dispatch(self, control_id: str, value: Optional[str] = None, generation: Optional[int] = None) -> Optional[Snapshot]:
        if self.table is None:
            await self.snapshot()
        control, handler = self.table.lookup(control_id, generation)
        logger.debug("Dispatching %s (value=%r)", control_id, value)
        result = handler(value)
        if inspect.isawaitable(result):
            self._track(result)
            # let the action run up to its first suspension so the snapshot shows it
            await asyncio.sleep(0)
        if not control.rerender:
            return None
        return await self.snapshot()
    @property
    def generation(self) -> int:
        return self._generation
