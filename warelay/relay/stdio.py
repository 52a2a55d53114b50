"""Line-delimited JSON transport over stdin/stdout.

Each input line is one inbound message::

    {"from": "whatsapp:+15551234567", "to": "+15557654321", "body": "hi",
     "mediaPath": "/tmp/a.jpg", "mediaType": "image/jpeg", "messageId": "SM1"}

Each reply is written as one line: ``{"to": ..., "body": ..., "mediaUrl": ...,
"replyTo": ...}`` (empty fields omitted). A webhook or WhatsApp-Web bridge can
pipe messages through ``warelay relay`` this way.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable

from warelay.bus import InboundMessage, OutboundMessage
from warelay.relay.loop import AutoReplyLoop

logger = logging.getLogger(__name__)

CHANNEL = "stdio"
DRAIN_POLL_SECONDS = 0.05


def parse_inbound_line(line: str) -> InboundMessage | None:
    """Parse one input line; blank or malformed lines give ``None``."""
    line = line.strip()
    if not line:
        return None

    try:
        data = json.loads(line)
    except ValueError:
        logger.warning("Skipping input line that is not JSON: %.80s", line)
        return None

    if not isinstance(data, dict) or not data.get("from"):
        logger.warning("Skipping input line without a \"from\" field: %.80s", line)
        return None

    return InboundMessage(
        channel=CHANNEL,
        sender=str(data["from"]),
        recipient=str(data.get("to") or "warelay"),
        content=str(data.get("body") or ""),
        media_path=data.get("mediaPath"),
        media_url=data.get("mediaUrl"),
        media_type=data.get("mediaType"),
        message_id=data.get("messageId"),
    )


def format_outbound(msg: OutboundMessage) -> str:
    payload = {"to": msg.to, "body": msg.content}
    if msg.media_url:
        payload["mediaUrl"] = msg.media_url
    if msg.reply_to:
        payload["replyTo"] = msg.reply_to
    return json.dumps(payload, ensure_ascii=False)


async def run_stdio_relay(
    loop: AutoReplyLoop,
    read_line: Callable[[], Awaitable[str]],
    write_line: Callable[[str], None],
) -> int:
    """Relay input lines through ``loop`` until ``read_line`` returns "".

    Replies still in flight at end of input are waited for. Returns the
    number of messages accepted.
    """
    bus = loop.bus

    async def deliver(msg: OutboundMessage) -> None:
        write_line(format_outbound(msg))

    bus.on_outbound(CHANNEL, deliver)
    runner = asyncio.create_task(loop.run())
    # run() must have started before stop() can end it.
    await asyncio.sleep(0)

    accepted = 0
    try:
        while True:
            line = await read_line()
            if not line:
                break
            msg = parse_inbound_line(line)
            if msg is None:
                continue
            await bus.publish_inbound(msg)
            accepted += 1

        while bus.inbound_size:
            await asyncio.sleep(DRAIN_POLL_SECONDS)
    finally:
        loop.stop()
        await runner
        await loop.drain()

    logger.info("Input closed after %d message(s)", accepted)
    return accepted
