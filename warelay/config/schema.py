"""Configuration schema using Pydantic."""

import json
import logging
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from warelay.utils import get_config_dir

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 600
DEFAULT_TRANSCRIBE_TIMEOUT_SECONDS = 45
DEFAULT_RESET_TRIGGER = "/new"
DEFAULT_IDLE_MINUTES = 60


class _Model(BaseModel):
    """Base model: camelCase on disk, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoggingConfig(_Model):
    """Logging configuration."""

    level: Literal["silent", "fatal", "error", "warn", "info", "debug", "trace"] = "info"
    file: str | None = None


class SessionConfig(_Model):
    """Multi-turn session configuration for command replies."""

    scope: Literal["per-sender", "global"] = "per-sender"
    reset_triggers: list[str] = Field(default_factory=lambda: [DEFAULT_RESET_TRIGGER])
    idle_minutes: int = Field(default=DEFAULT_IDLE_MINUTES, gt=0)
    store: str | None = None  # defaults to ~/.warelay/sessions.json
    session_arg_new: list[str] | None = None
    session_arg_resume: list[str] | None = None
    session_arg_before_body: bool = True
    send_system_once: bool = False
    session_intro: str | None = None


class _ReplyBase(_Model):
    body_prefix: str | None = None
    media_url: str | None = None  # static attachment (path or URL)
    media_max_mb: float | None = Field(default=None, gt=0)


class TextReplyConfig(_ReplyBase):
    """Reply with a rendered static template."""

    mode: Literal["text"] = "text"
    text: str = Field(min_length=1)


class CommandReplyConfig(_ReplyBase):
    """Reply with the stdout of an external command."""

    mode: Literal["command"] = "command"
    command: list[str] = Field(min_length=1)
    cwd: str | None = None
    template: str | None = None
    timeout_seconds: int = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    session: SessionConfig | None = None
    claude_output_format: Literal["text", "json", "stream-json"] | None = None


ReplyConfig = Annotated[
    Union[TextReplyConfig, CommandReplyConfig],
    Field(discriminator="mode"),
]


class TranscribeAudioConfig(_Model):
    """Command that turns inbound audio into a transcript on stdout."""

    command: list[str] = Field(min_length=1)
    timeout_seconds: int = Field(default=DEFAULT_TRANSCRIBE_TIMEOUT_SECONDS, gt=0)


class InboundConfig(_Model):
    """Inbound message handling."""

    allow_from: list[str] = Field(default_factory=list)  # E.164 numbers
    transcribe_audio: TranscribeAudioConfig | None = None
    reply: ReplyConfig | None = None


class Config(_Model):
    """Root configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    inbound: InboundConfig = Field(default_factory=InboundConfig)

    @property
    def reply(self) -> TextReplyConfig | CommandReplyConfig | None:
        """Get the configured reply policy, if any."""
        return self.inbound.reply


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "warelay.json"


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file.

    A missing, unreadable or invalid file yields the default ``Config``, which
    has no reply policy, so no auto-replies are sent.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return Config()

    try:
        data = json.loads(config_path.read_text())
    except (OSError, ValueError) as e:
        logger.error("Failed to read config at %s: %s", config_path, e)
        return Config()

    if not isinstance(data, dict):
        return Config()

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        logger.error("Invalid warelay config at %s:", config_path)
        for issue in e.errors():
            loc = ".".join(str(part) for part in issue["loc"])
            logger.error("- %s: %s", loc, issue["msg"])
        return Config()


def save_config(config: Config, path: Path | None = None) -> None:
    """Save configuration to file."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(config.model_dump_json(indent=2, by_alias=True, exclude_none=True))
