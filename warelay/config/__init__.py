"""Configuration module."""

from warelay.config.schema import (
    CommandReplyConfig,
    Config,
    InboundConfig,
    LoggingConfig,
    SessionConfig,
    TextReplyConfig,
    TranscribeAudioConfig,
    get_config_path,
    load_config,
    save_config,
)

__all__ = [
    "CommandReplyConfig",
    "Config",
    "InboundConfig",
    "LoggingConfig",
    "SessionConfig",
    "TextReplyConfig",
    "TranscribeAudioConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
