"""Auto-reply loop - connects the message bus to the reply pipeline."""

import asyncio
import logging
from typing import Awaitable, Callable

from warelay.auto_reply.reply import CommandRunner, ReplyHooks, ReplyResult, get_reply_from_config
from warelay.auto_reply.templating import MsgContext
from warelay.bus import InboundMessage, MessageBus, OutboundMessage
from warelay.config.schema import Config
from warelay.process.command_queue import CommandQueue

logger = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, something went wrong while preparing a reply."


class AutoReplyLoop:
    """
    Consumes inbound messages and publishes replies.

    Every message is handled in its own task. Command replies still run one
    at a time because they share the command queue; text replies do not wait.
    """

    def __init__(
        self,
        bus: MessageBus,
        config: Config,
        command_runner: CommandRunner | None = None,
        queue: CommandQueue | None = None,
        on_reply_start: Callable[[InboundMessage], Awaitable[None]] | None = None,
    ):
        self.bus = bus
        self.config = config
        self.command_runner = command_runner
        self.queue = queue
        self.on_reply_start = on_reply_start
        self._running = False
        self._tasks: set[asyncio.Task] = set()

    async def run(self) -> None:
        """Run the loop, processing messages from the bus."""
        self._running = True
        logger.info("Auto-reply loop started")

        while self._running:
            try:
                msg = await asyncio.wait_for(self.bus.consume_inbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            task = asyncio.create_task(self._handle(msg))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def stop(self) -> None:
        """Stop the loop; replies already in flight still complete."""
        self._running = False
        logger.info("Auto-reply loop stopping")

    async def drain(self) -> None:
        """Wait for in-flight replies to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _handle(self, msg: InboundMessage) -> None:
        try:
            response = await self._process_message(msg)
        except Exception:
            logger.exception("Error processing message from %s", msg.sender)
            response = OutboundMessage(
                channel=msg.channel,
                to=msg.sender,
                content=ERROR_REPLY,
                reply_to=msg.message_id,
            )
        if response:
            await self.bus.publish_outbound(response)

    def _hooks_for(self, msg: InboundMessage) -> ReplyHooks:
        if self.on_reply_start is None:
            return ReplyHooks()
        return ReplyHooks(on_reply_start=lambda: self.on_reply_start(msg))

    async def _process_message(self, msg: InboundMessage) -> OutboundMessage | None:
        logger.info("Inbound from %s via %s", msg.sender, msg.channel)
        result = await self._reply(msg.to_context(), self._hooks_for(msg))
        if result is None:
            return None
        return OutboundMessage(
            channel=msg.channel,
            to=msg.sender,
            content=result.text,
            media_url=result.media_url,
            reply_to=msg.message_id,
        )

    async def _reply(self, ctx: MsgContext, hooks: ReplyHooks | None = None) -> ReplyResult | None:
        return await get_reply_from_config(
            ctx,
            hooks,
            self.config,
            command_runner=self.command_runner,
            queue=self.queue,
        )

    async def process_direct(
        self,
        content: str,
        sender: str = "cli",
        recipient: str = "warelay",
        media_path: str | None = None,
        media_type: str | None = None,
        media_url: str | None = None,
    ) -> ReplyResult | None:
        """Compute a reply without going through the bus (used by the CLI)."""
        ctx = MsgContext(
            body=content,
            sender=sender,
            recipient=recipient,
            media_path=media_path,
            media_type=media_type,
            media_url=media_url,
        )
        return await self._reply(ctx)
