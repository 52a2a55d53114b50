"""Auto-reply loop and the stdio transport."""

from warelay.relay.loop import AutoReplyLoop
from warelay.relay.stdio import run_stdio_relay

__all__ = ["AutoReplyLoop", "run_stdio_relay"]
