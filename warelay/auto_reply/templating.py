"""Message context and ``{{Key}}`` template rendering."""

import re
from dataclasses import dataclass
from typing import Any, Mapping

PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


@dataclass(frozen=True)
class MsgContext:
    """One inbound message as seen by the reply pipeline."""

    body: str = ""
    sender: str = ""  # From
    recipient: str = ""  # To
    media_path: str | None = None
    media_url: str | None = None
    media_type: str | None = None
    message_id: str | None = None

    def __post_init__(self) -> None:
        if self.body is None:
            object.__setattr__(self, "body", "")

    def template_values(self) -> dict[str, Any]:
        """Get the placeholder values carried by the message itself."""
        return {
            "Body": self.body,
            "From": self.sender,
            "To": self.recipient,
            "MediaPath": self.media_path,
            "MediaUrl": self.media_url,
            "MediaType": self.media_type,
            "MessageId": self.message_id,
        }


def _render(template: str, values: Mapping[str, Any]) -> str:
    def replace(m: re.Match) -> str:
        value = values.get(m.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER_RE.sub(replace, template)


def apply_template(template: str | list[str], values: Mapping[str, Any]) -> str | list[str]:
    """Replace every ``{{Key}}`` with its value, or "" when the key is unknown."""
    if isinstance(template, str):
        return _render(template, values)
    return [_render(part, values) for part in template]
