"""Session management for multi-turn command replies."""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from warelay.auto_reply.templating import MsgContext, apply_template
from warelay.config.schema import SessionConfig
from warelay.session.store import (
    SessionEntry,
    load_session_store,
    resolve_store_path,
    save_session_store,
)
from warelay.utils import normalize_e164

logger = logging.getLogger(__name__)

GLOBAL_KEY = "global"
UNKNOWN_KEY = "unknown"

DEFAULT_SESSION_ARG_NEW = ["--session-id", "{{SessionId}}"]
DEFAULT_SESSION_ARG_RESUME = ["--resume", "{{SessionId}}"]


def new_session_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SessionState:
    """The session decision for one turn."""

    key: str
    entry: SessionEntry
    is_new: bool
    body: str  # body with any reset trigger stripped
    include_system: bool  # carry template/bodyPrefix this turn
    include_intro: bool  # carry sessionIntro this turn

    def template_values(self) -> dict[str, Any]:
        return {
            "SessionId": self.entry.session_id,
            "IsNewSession": "true" if self.is_new else "false",
            "BodyStripped": self.body,
        }


class SessionManager:
    """
    Decides whether a turn starts a new session or resumes one.

    State lives in a single JSON store file that is loaded and rewritten on
    every call; nothing is cached between turns.
    """

    def __init__(self, config: SessionConfig):
        self.config = config
        self.store_path: Path = resolve_store_path(config.store)

    def derive_key(self, ctx: MsgContext) -> str:
        """Pick the conversation bucket: one global key or the sender's number."""
        if self.config.scope == "global":
            return GLOBAL_KEY
        key = normalize_e164(ctx.sender) if ctx.sender else ""
        return key or UNKNOWN_KEY

    def _match_reset(self, body: str) -> str | None:
        trimmed = body.strip()
        for trigger in self.config.reset_triggers:
            if trigger and trimmed.startswith(trigger):
                return trigger
        return None

    def resolve(self, ctx: MsgContext, body: str | None = None) -> SessionState:
        """Resolve, update and persist the session for this turn.

        ``body`` overrides ``ctx.body`` (e.g. with an audio transcript).
        Reset triggers are checked before idle expiry.
        """
        body = ctx.body if body is None else body
        key = self.derive_key(ctx)
        store = load_session_store(self.store_path)
        entry = store.get(key)
        now = now_ms()

        trigger = self._match_reset(body)
        if trigger:
            body = body.strip()[len(trigger):].lstrip()
            is_new = True
            logger.info("Session reset for %s via %r", key, trigger)
        elif entry is None:
            is_new = True
        elif now - entry.updated_at > self.config.idle_minutes * 60_000:
            is_new = True
            logger.info("Session for %s idle for over %d min; starting fresh", key, self.config.idle_minutes)
        else:
            is_new = False

        if is_new or entry is None:
            entry = SessionEntry(session_id=new_session_id(), updated_at=now)

        system_sent = entry.system_sent
        send_once = self.config.send_system_once
        include_system = not send_once or not system_sent
        include_intro = bool(self.config.session_intro) and (not system_sent if send_once else is_new)

        entry = SessionEntry(
            session_id=entry.session_id,
            updated_at=now,
            system_sent=system_sent or (send_once and include_system),
        )
        store[key] = entry
        save_session_store(self.store_path, store)

        logger.debug("Session %s for %s (%s)", entry.session_id, key, "new" if is_new else "resumed")
        return SessionState(
            key=key,
            entry=entry,
            is_new=is_new,
            body=body,
            include_system=include_system,
            include_intro=include_intro,
        )

    def session_args(self, state: SessionState) -> list[str]:
        """Render the argv fragment for a new or resumed session."""
        if state.is_new:
            template = self.config.session_arg_new
            if template is None:
                template = DEFAULT_SESSION_ARG_NEW
        else:
            template = self.config.session_arg_resume
            if template is None:
                template = DEFAULT_SESSION_ARG_RESUME
        return apply_template(template, state.template_values())

    def apply_session_args(self, argv: list[str], state: SessionState) -> list[str]:
        """Insert session args before the body (last element) or append them."""
        args = self.session_args(state)
        if not args:
            return argv
        if self.config.session_arg_before_body and len(argv) > 1:
            insert_at = len(argv) - 1
        else:
            insert_at = len(argv)
        return argv[:insert_at] + args + argv[insert_at:]
