"""Extract ``MEDIA:`` attachment markers from command output.

A reply command can ask for an attachment by printing ``MEDIA:<url-or-path>``
anywhere in its output, e.g.::

    Here's the chart you asked for.
    MEDIA:/tmp/chart.png

The first valid marker is removed from the text and surfaced as the
attachment; anything that does not look like a URL or path is left alone.
"""

import re
from dataclasses import dataclass

MARKER = "MEDIA:"

# Structural punctuation that may trail a bare token (JSON output, prose).
TRAILING_PUNCTUATION = "\"'`}])>,;."
OPENING_QUOTES = "\"'"

URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://\S+$")
PATH_PREFIXES = ("/", "./", "../", "~/", "file:")


@dataclass
class MediaSplit:
    """Command output with the media marker removed."""

    text: str
    media_url: str | None = None


def is_media_candidate(token: str) -> bool:
    """Check whether a token reads as a URL or a filesystem path."""
    if not token or any(ch.isspace() for ch in token):
        return False
    return bool(URL_RE.match(token)) or token.startswith(PATH_PREFIXES)


def _read_token(text: str, start: int) -> tuple[str, int]:
    """Read the token following a marker; returns (candidate, end index)."""
    pos = start
    if text.startswith(" ", pos):
        pos += 1

    if text.startswith("`", pos):
        close = text.find("`", pos + 1)
        if close != -1:
            return text[pos + 1:close], close + 1

    end = pos
    while end < len(text) and not text[end].isspace():
        end += 1
    return text[pos:end].strip("`").rstrip(TRAILING_PUNCTUATION), end


def _join(before: str, after: str) -> str:
    left = before.rstrip(" \t")
    right = after.lstrip(" \t")

    if left and not left.endswith("\n") and right and not right.startswith("\n"):
        # Marker sat inside a sentence.
        return f"{left} {right}"
    if (not left or left.endswith("\n")) and right.startswith("\n"):
        # Marker was the whole line; drop the line break it leaves behind.
        right = right[1:]
    return left + right


def split_media_from_output(raw: str) -> MediaSplit:
    """Split a ``MEDIA:`` attachment out of command output.

    Only the first valid marker is honored. Without one the text comes back
    unchanged and ``media_url`` is ``None``.
    """
    search_from = 0
    while True:
        idx = raw.find(MARKER, search_from)
        if idx == -1:
            return MediaSplit(text=raw)

        candidate, end = _read_token(raw, idx + len(MARKER))
        if is_media_candidate(candidate):
            start = idx
            if start > 0 and raw[start - 1] in OPENING_QUOTES:
                start -= 1
            text = _join(raw[:start], raw[end:]).strip()
            return MediaSplit(text=text, media_url=candidate)

        search_from = idx + len(MARKER)
