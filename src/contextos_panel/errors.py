from __future__ import annotations
from enum import Enum
class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    NETWORK = "network"
    TIMEOUT = "timeout"
class PanelError(Exception):
    """Base class for every failure the panel surfaces to the user."""
    kind: ErrorKind = ErrorKind.NETWORK
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
class ValidationError(PanelError):
    """Raised before any network call when a submission precondition fails."""
    kind = ErrorKind.VALIDATION
class AuthError(PanelError):
    """Raised when the credential is missing or rejected by the service."""
    kind = ErrorKind.AUTH
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
class NetworkError(PanelError):
    """Raised on transport failures, non-2xx responses and undecodable bodies."""
    kind = ErrorKind.NETWORK
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
class PromptTimeoutError(PanelError):
    kind = ErrorKind.TIMEOUT
