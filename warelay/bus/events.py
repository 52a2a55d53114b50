"""Message events for the communication bus."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from warelay.auto_reply.templating import MsgContext


@dataclass
class InboundMessage:
    """Message received from a WhatsApp transport."""

    channel: str  # Source transport (twilio, web, cli)
    sender: str  # Provider-formatted From address
    recipient: str  # Provider-formatted To address
    content: str  # Message text, "" when absent
    timestamp: datetime = field(default_factory=datetime.now)
    media_path: str | None = None  # Local copy of the attachment
    media_url: str | None = None
    media_type: str | None = None
    message_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_context(self) -> MsgContext:
        """Convert to the reply pipeline's message context."""
        return MsgContext(
            body=self.content or "",
            sender=self.sender,
            recipient=self.recipient,
            media_path=self.media_path,
            media_url=self.media_url,
            media_type=self.media_type,
            message_id=self.message_id,
        )


@dataclass
class OutboundMessage:
    """Reply to send back through a transport."""

    channel: str
    to: str
    content: str
    media_url: str | None = None  # URL or local path; the transport hosts it
    reply_to: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
