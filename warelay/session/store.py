"""On-disk session store: one JSON object mapping conversation keys to entries."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from warelay.utils import get_config_dir, resolve_user_path

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    """One conversation's session state."""

    session_id: str
    updated_at: int  # epoch milliseconds
    system_sent: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "updatedAt": self.updated_at,
            "systemSent": self.system_sent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionEntry":
        return cls(
            session_id=str(data["sessionId"]),
            updated_at=int(data["updatedAt"]),
            system_sent=bool(data.get("systemSent", False)),
        )


def default_store_path() -> Path:
    return get_config_dir() / "sessions.json"


def resolve_store_path(store: str | None = None) -> Path:
    """Get the store file path, defaulting to ~/.warelay/sessions.json."""
    if not store:
        return default_store_path()
    return resolve_user_path(store)


def load_session_store(path: Path) -> dict[str, SessionEntry]:
    """Load the store; a missing or corrupt file is an empty store."""
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable session store %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        return {}

    store: dict[str, SessionEntry] = {}
    for key, raw in data.items():
        try:
            store[key] = SessionEntry.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed session entry %r in %s", key, path)
    return store


def save_session_store(path: Path, store: dict[str, SessionEntry]) -> None:
    """Rewrite the whole store file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {key: entry.to_dict() for key, entry in store.items()}
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
