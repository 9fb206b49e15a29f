from .backend import BackendSessionInfo, LocalSessionBackend, SessionBackend, SessionConfig
from .controller import SessionController
from .tracker import SessionInfo, SessionState, SessionTracker

__all__ = [
    "BackendSessionInfo",
    "LocalSessionBackend",
    "SessionBackend",
    "SessionConfig",
    "SessionController",
    "SessionInfo",
    "SessionState",
    "SessionTracker",
]
