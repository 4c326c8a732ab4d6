"""Tests for the Redis pub/sub relay transport."""

import asyncio
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from structlog.testing import capture_logs

from pygmy_rest.core.modules.relay import transport
from pygmy_rest.core.modules.relay.models import RelayEnvelope
from pygmy_rest.core.modules.relay.transport import RedisRelay


class FakePubSub:
    """Replays a scripted sequence of messages; exceptions in the script are raised."""

    def __init__(self, script: list) -> None:
        self.script = script
        self.channels: list[str] = []
        self.closed = False

    async def subscribe(self, *channels: str) -> None:
        self.channels.extend(channels)

    async def listen(self):
        for item in self.script:
            if isinstance(item, BaseException):
                raise item
            yield item
        # Connection stays open with nothing more to read
        await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


class FakeRedis:
    def __init__(self) -> None:
        self.published: list[tuple[str, str]] = []
        self.scripts: list[list] = []
        self.pubsubs: list[FakePubSub] = []
        self.closed = False

    async def publish(self, channel: str, data: str) -> int:
        self.published.append((channel, data))
        return 1

    def pubsub(self, ignore_subscribe_messages: bool = False) -> FakePubSub:
        pubsub = FakePubSub(self.scripts.pop(0) if self.scripts else [])
        self.pubsubs.append(pubsub)
        return pubsub

    async def aclose(self) -> None:
        self.closed = True


def wire(sender: str, payload: dict) -> str:
    return json.dumps({"from": sender, "payload": payload})


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(transport.redis, "from_url", lambda url, **kwargs: fake)
    monkeypatch.setattr(transport, "RECONNECT_DELAY_SECONDS", 0)
    return fake


@pytest.fixture
def redis_relay(fake_redis):
    return RedisRelay("redis://localhost:6379/0", "rest", "ipc:")


class RecordingHandler:
    def __init__(self, expected: int = 1) -> None:
        self.received: list[RelayEnvelope] = []
        self.expected = expected
        self.done = asyncio.Event()

    async def __call__(self, envelope: RelayEnvelope) -> None:
        self.received.append(envelope)
        if len(self.received) >= self.expected:
            self.done.set()


class TestSend:
    async def test_publishes_envelope(self, redis_relay, fake_redis):
        """Test that a payload is wrapped with the sender name and published on the target channel."""
        await redis_relay.send("gateway", {"type": "event", "event": "FRIEND_CREATE", "client": "1", "userId": "2"})

        [(channel, data)] = fake_redis.published
        assert channel == "ipc:gateway"
        assert json.loads(data) == {
            "from": "rest",
            "payload": {"type": "event", "event": "FRIEND_CREATE", "client": "1", "userId": "2"},
        }


class TestDispatch:
    """Test turning raw channel data into handler calls."""

    async def test_valid_message(self, redis_relay):
        handler = RecordingHandler()

        redis_relay._dispatch(handler, wire("gateway", {"type": "request", "action": "VERIFY_TOKEN", "token": "t"}))
        await asyncio.wait_for(handler.done.wait(), timeout=1)

        [envelope] = handler.received
        assert envelope.sender == "gateway"
        assert envelope.payload == {"type": "request", "action": "VERIFY_TOKEN", "token": "t"}

    @pytest.mark.parametrize(
        "data",
        [
            "not json",
            "[1, 2]",
            '{"from": "gateway", "payload": [1]}',
            '{"from": "gateway", "payload": "text"}',
            '{"payload": {}}',
        ],
    )
    async def test_malformed_message_dropped(self, redis_relay, data):
        """Test that undecodable messages are logged and never reach the handler."""
        handler = RecordingHandler()

        with capture_logs() as logs:
            redis_relay._dispatch(handler, data)

        assert redis_relay._message_tasks == set()
        assert handler.received == []
        assert [entry["event"] for entry in logs] == ["relay_message_malformed"]

    async def test_handler_failure_contained(self, redis_relay):
        """Test that an exception in the handler is logged, not propagated."""

        async def failing_handler(envelope: RelayEnvelope) -> None:
            raise RuntimeError("handler broke")

        envelope = RelayEnvelope(sender="gateway", payload={"type": "request"})
        with capture_logs() as logs:
            await redis_relay._handle(failing_handler, envelope)

        [entry] = logs
        assert entry["event"] == "relay_handler_failed"
        assert entry["log_level"] == "error"
        assert entry["sender"] == "gateway"


class TestListen:
    """Test the subscriber loop."""

    async def test_delivers_and_survives_errors(self, redis_relay, fake_redis):
        """Test that the listener keeps delivering after a failed subscription."""
        first = wire("gateway", {"type": "request", "action": "FETCH_USER_DATA", "userId": "1"})
        second = wire("gateway", {"type": "request", "action": "FETCH_USER_DATA", "userId": "2"})
        fake_redis.scripts = [
            [{"type": "subscribe", "data": 1}, {"type": "message", "data": first}, RuntimeError("unexpected")],
            [{"type": "message", "data": second}],
        ]
        handler = RecordingHandler(expected=2)

        with capture_logs() as logs:
            await redis_relay.start(handler)
            await asyncio.wait_for(handler.done.wait(), timeout=1)
            await redis_relay.stop()

        assert [envelope.payload["userId"] for envelope in handler.received] == ["1", "2"]
        assert [pubsub.channels for pubsub in fake_redis.pubsubs] == [["ipc:rest"], ["ipc:rest"]]
        assert all(pubsub.closed for pubsub in fake_redis.pubsubs)
        assert "relay_listener_failed" in [entry["event"] for entry in logs]
        assert fake_redis.closed

    async def test_reconnects_after_redis_error(self, redis_relay, fake_redis):
        """Test that a lost connection is logged as a warning and resubscribed."""
        message = wire("gateway", {"type": "request", "action": "VERIFY_TOKEN", "token": "t"})
        fake_redis.scripts = [[RedisConnectionError("connection lost")], [{"type": "message", "data": message}]]
        handler = RecordingHandler()

        with capture_logs() as logs:
            await redis_relay.start(handler)
            await asyncio.wait_for(handler.done.wait(), timeout=1)
            await redis_relay.stop()

        assert len(fake_redis.pubsubs) == 2
        disconnects = [entry for entry in logs if entry["event"] == "relay_disconnected"]
        assert [entry["log_level"] for entry in disconnects] == ["warning"]

    async def test_stop_without_start(self, redis_relay, fake_redis):
        await redis_relay.stop()
        assert fake_redis.closed
