"""Helpers for driving the ``claude`` CLI as a reply command."""

import json
import os
from pathlib import Path
from typing import Any

CLAUDE_BIN = "claude"
DEFAULT_OUTPUT_FORMAT = "text"

IDENTITY_MARKER = "You are answering WhatsApp messages relayed by warelay."
IDENTITY_TEMPLATE = (
    IDENTITY_MARKER + " "
    "Your working directory is {cwd}; keep notes and scratch files there. "
    "Replies are read on a phone: keep them short and plain, under about 1500 characters. "
    "To send an image or file back, put MEDIA:<url-or-absolute-path> on its own line "
    "(no spaces in the path)."
)


def is_claude_command(argv: list[str]) -> bool:
    """Check whether the command runs the claude binary."""
    return bool(argv) and Path(argv[0]).name == CLAUDE_BIN


def identity_prefix(cwd: str | None = None) -> str:
    return IDENTITY_TEMPLATE.format(cwd=cwd or os.getcwd())


def _has_output_format(argv: list[str]) -> bool:
    return any(part == "--output-format" or part.startswith("--output-format=") for part in argv)


def prepare_claude_argv(
    argv: list[str],
    output_format: str | None = None,
    cwd: str | None = None,
) -> list[str]:
    """Make a claude invocation non-interactive and add the identity preamble.

    ``-p`` and ``--output-format`` are added when missing, just before the
    prompt, which stays the last element.
    """
    argv = list(argv)
    if len(argv) < 2:
        return argv

    flags: list[str] = []
    if "-p" not in argv and "--print" not in argv:
        flags.append("-p")
    if not _has_output_format(argv):
        flags.extend(["--output-format", output_format or DEFAULT_OUTPUT_FORMAT])

    prompt = argv[-1]
    if IDENTITY_MARKER not in prompt:
        prompt = f"{identity_prefix(cwd)}\n\n{prompt}"

    return argv[:-1] + flags + [prompt]


def _text_from_payload(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ("text", "result"):
        value = payload.get(key)
        if isinstance(value, str):
            return value
    return None


def parse_claude_json(raw: str, stream: bool = False) -> str | None:
    """Pull the reply text out of ``json`` or ``stream-json`` output.

    The whole output must be one JSON object; it yields its ``text`` field,
    else its ``result`` field. With ``stream`` set the output may instead be
    line-delimited, and the last line carrying either field wins. Returns
    ``None`` when nothing usable is found.
    """
    raw = raw.strip()
    if not raw:
        return None

    try:
        return _text_from_payload(json.loads(raw))
    except ValueError:
        if not stream:
            return None

    for line in reversed(raw.splitlines()):
        line = line.strip()
        if not line:
            continue
        try:
            text = _text_from_payload(json.loads(line))
        except ValueError:
            continue
        if text is not None:
            return text
    return None
