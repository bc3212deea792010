from __future__ import annotations
import asyncio
import logging
from typing import Optional
from .errors import AuthError, PanelError
from .lifecycle import ClientFactory, PromptLifecycleController
from .state import StateStore
logger = logging.getLogger(__name__)
class HistoryController:
    def __init__(
        self,
        store: StateStore,
        client_factory: ClientFactory,
        lifecycle: Optional[PromptLifecycleController] = None,
    ) -> None:
        self.store = store
        self.client_factory = client_factory
        self.lifecycle = lifecycle
    async def load(self) -> bool:
        s = self.store.state
        if not s.is_authenticated:
            self.store.deauthenticate()
            return False
        if s.history_loading:
            return False
        self.store.begin_history_load()
        client = self.client_factory(s.api_key)
        try:
            prompts = await asyncio.to_thread(client.list_prompts, s.history_search)
        except PanelError as exc:
            logger.warning("Loading prompt history failed: %s", exc.message)
            self.store.set_history([])
            if isinstance(exc, AuthError):
                self.store.deauthenticate(exc.message)
            return False
        self.store.set_history(prompts)
        return True
    def open(self, entry_id: str) -> bool:
        known = any(str(p.id) == str(entry_id) for p in self.store.state.prompt_history)
        if not known:
            logger.info("History entry %s not found", entry_id)
            return False
        if self.lifecycle is not None:
            self.lifecycle.cancel()
        return self.store.open_history_entry(entry_id)
