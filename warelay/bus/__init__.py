"""Queues between transports and the auto-reply loop."""

import asyncio
import logging
from typing import Awaitable, Callable

from warelay.bus.events import InboundMessage, OutboundMessage

logger = logging.getLogger(__name__)

OutboundHandler = Callable[[OutboundMessage], Awaitable[None]]


class MessageBus:
    """
    Routes messages between transports and the reply loop.

    Transports publish what they receive as inbound messages. Replies are
    handed to the handler registered for their channel; replies for a
    channel nobody registered are queued for ``consume_outbound``.
    """

    def __init__(self):
        self._inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self._outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue()
        self._deliverers: dict[str, OutboundHandler] = {}

    async def publish_inbound(self, msg: InboundMessage) -> None:
        await self._inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        """Wait for the next inbound message."""
        return await self._inbound.get()

    @property
    def inbound_size(self) -> int:
        """Inbound messages not yet picked up by the loop."""
        return self._inbound.qsize()

    def on_outbound(self, channel: str, handler: OutboundHandler) -> None:
        """Deliver replies for ``channel`` through ``handler``; replaces any previous one."""
        self._deliverers[channel] = handler

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        """Deliver a reply, or queue it when its channel has no handler.

        A failing handler is logged; the reply is not retried.
        """
        handler = self._deliverers.get(msg.channel)
        if handler is None:
            await self._outbound.put(msg)
            return
        try:
            await handler(msg)
        except Exception:
            logger.exception("Delivery over %s failed for reply to %s", msg.channel, msg.to)

    async def consume_outbound(self) -> OutboundMessage:
        """Wait for the next reply on a channel without a handler."""
        return await self._outbound.get()


__all__ = ["MessageBus", "InboundMessage", "OutboundMessage", "OutboundHandler"]
