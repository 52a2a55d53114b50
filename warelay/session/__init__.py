"""Session management module."""

from warelay.session.manager import SessionManager, SessionState
from warelay.session.store import (
    SessionEntry,
    load_session_store,
    resolve_store_path,
    save_session_store,
)

__all__ = [
    "SessionEntry",
    "SessionManager",
    "SessionState",
    "load_session_store",
    "resolve_store_path",
    "save_session_store",
]
