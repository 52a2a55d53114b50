"""Tests for message bus."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

from warelay.auto_reply.templating import MsgContext
from warelay.bus import MessageBus
from warelay.bus.events import InboundMessage, OutboundMessage


def _inbound(content: str = "Hello!", **kwargs) -> InboundMessage:
    return InboundMessage(
        channel="twilio",
        sender="whatsapp:+15550001",
        recipient="whatsapp:+15550002",
        content=content,
        **kwargs,
    )


class TestInboundMessage:
    """Tests for InboundMessage dataclass."""

    def test_create_message(self):
        msg = _inbound()

        assert msg.channel == "twilio"
        assert msg.sender == "whatsapp:+15550001"
        assert msg.recipient == "whatsapp:+15550002"
        assert msg.content == "Hello!"
        assert isinstance(msg.timestamp, datetime)
        assert msg.media_path is None
        assert msg.metadata == {}

    def test_to_context(self):
        msg = _inbound(
            "Check this image",
            media_path="/tmp/a.jpg",
            media_url="https://example.com/a.jpg",
            media_type="image/jpeg",
            message_id="SM123",
        )

        assert msg.to_context() == MsgContext(
            body="Check this image",
            sender="whatsapp:+15550001",
            recipient="whatsapp:+15550002",
            media_path="/tmp/a.jpg",
            media_url="https://example.com/a.jpg",
            media_type="image/jpeg",
            message_id="SM123",
        )

    def test_to_context_empty_content(self):
        assert _inbound("").to_context().body == ""


class TestOutboundMessage:
    """Tests for OutboundMessage dataclass."""

    def test_create_message(self):
        msg = OutboundMessage(channel="twilio", to="whatsapp:+15550001", content="Hello back!")

        assert msg.to == "whatsapp:+15550001"
        assert msg.content == "Hello back!"
        assert msg.media_url is None
        assert msg.reply_to is None
        assert msg.metadata == {}

    def test_with_media_and_reply_to(self):
        msg = OutboundMessage(
            channel="twilio",
            to="+1",
            content="Chart",
            media_url="/tmp/chart.png",
            reply_to="SM123",
        )

        assert msg.media_url == "/tmp/chart.png"
        assert msg.reply_to == "SM123"


class TestMessageBus:
    """Tests for MessageBus class."""

    def test_create_bus(self):
        bus = MessageBus()
        assert bus._deliverers == {}
        assert bus.inbound_size == 0

    async def test_publish_and_consume_inbound(self):
        bus = MessageBus()
        msg = _inbound("Test message")

        await bus.publish_inbound(msg)
        assert bus.inbound_size == 1
        received = await bus.consume_inbound()

        assert received is msg
        assert bus.inbound_size == 0

    async def test_unclaimed_channel_is_queued(self):
        bus = MessageBus()
        msg = OutboundMessage(channel="cli", to="+1", content="Response")

        await bus.publish_outbound(msg)
        received = await bus.consume_outbound()

        assert received is msg

    async def test_inbound_queue_ordering(self):
        bus = MessageBus()

        for i in range(3):
            await bus.publish_inbound(_inbound(f"Message {i}"))

        for i in range(3):
            received = await bus.consume_inbound()
            assert received.content == f"Message {i}"

    async def test_replies_routed_by_channel(self):
        bus = MessageBus()
        twilio: list[OutboundMessage] = []
        web: list[OutboundMessage] = []

        async def deliver_twilio(msg: OutboundMessage):
            twilio.append(msg)

        async def deliver_web(msg: OutboundMessage):
            web.append(msg)

        bus.on_outbound("twilio", deliver_twilio)
        bus.on_outbound("web", deliver_web)

        to_twilio = OutboundMessage(channel="twilio", to="+1", content="a")
        to_web = OutboundMessage(channel="web", to="+2", content="b")
        await bus.publish_outbound(to_twilio)
        await bus.publish_outbound(to_web)

        assert twilio == [to_twilio]
        assert web == [to_web]
        assert bus._outbound.empty()

    async def test_registering_again_replaces_handler(self):
        bus = MessageBus()
        old = AsyncMock()
        new = AsyncMock()

        bus.on_outbound("twilio", old)
        bus.on_outbound("twilio", new)
        msg = OutboundMessage(channel="twilio", to="+1", content="x")
        await bus.publish_outbound(msg)

        old.assert_not_called()
        new.assert_awaited_once_with(msg)

    async def test_handler_error_is_logged(self, caplog):
        bus = MessageBus()

        async def failing_handler(msg: OutboundMessage):
            raise ValueError("Handler failed")

        bus.on_outbound("twilio", failing_handler)

        await bus.publish_outbound(OutboundMessage(channel="twilio", to="+1", content="Test"))

        assert "Delivery over twilio failed for reply to +1" in caplog.text
        assert bus._outbound.empty()

    async def test_consume_inbound_blocks_until_available(self):
        bus = MessageBus()
        result = []

        async def producer():
            await asyncio.sleep(0.1)
            await bus.publish_inbound(_inbound("Delayed message"))

        async def consumer():
            result.append(await bus.consume_inbound())

        await asyncio.gather(producer(), consumer())

        assert len(result) == 1
        assert result[0].content == "Delayed message"
