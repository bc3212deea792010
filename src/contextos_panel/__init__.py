__version__ = "2026.10.1"
from .api_client import ContextOSClient
from .composer import compose, compose_state
from .config import PanelConfig
from .credentials import CredentialStore
from .errors import AuthError, ErrorKind, NetworkError, PanelError, PromptTimeoutError, ValidationError
from .history import HistoryController
from .lifecycle import PromptLifecycleController
from .models import FileContextExtract, HistoryEntry, Prompt, PromptStatus, QuestionAnswer, Schema, SchemaType
from .rendering import HandlerTable, RenderedView, StaleEventError, ViewRenderer, bind
from .runtime import PanelActions, PanelRuntime
from .state import PanelState, Phase, StateStore, View
__all__ = [
    "AuthError",
    "ContextOSClient",
    "CredentialStore",
    "ErrorKind",
    "FileContextExtract",
    "HandlerTable",
    "HistoryController",
    "HistoryEntry",
    "NetworkError",
    "PanelActions",
    "PanelConfig",
    "PanelError",
    "PanelRuntime",
    "PanelState",
    "Phase",
    "Prompt",
    "PromptLifecycleController",
    "PromptStatus",
    "PromptTimeoutError",
    "QuestionAnswer",
    "RenderedView",
    "Schema",
    "SchemaType",
    "StaleEventError",
    "StateStore",
    "ValidationError",
    "View",
    "ViewRenderer",
    "bind",
    "compose",
    "compose_state",
]
