"""Relay transport over Redis pub/sub.

Each service listens on ``<prefix><name>``; sending to a target publishes
on ``<prefix><target>``. Delivery is fire-and-forget: nothing is
acknowledged and nothing is retried.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import pydantic
import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from pygmy_rest.core.modules.relay.models import RelayEnvelope

logger = structlog.get_logger(__name__)

MessageHandler = Callable[[RelayEnvelope], Awaitable[None]]

RECONNECT_DELAY_SECONDS = 1.0


class Relay(Protocol):
    async def start(self, handler: MessageHandler) -> None: ...

    async def stop(self) -> None: ...

    async def send(self, target: str, payload: dict[str, Any]) -> None: ...


class RedisRelay:
    """Redis pub/sub implementation of the relay.

    A single listener task reads the inbound channel and hands every
    message to the handler in its own task.
    """

    def __init__(self, redis_url: str, name: str, channel_prefix: str) -> None:
        self._client = redis.from_url(redis_url, decode_responses=True)
        self._name = name
        self._channel_prefix = channel_prefix
        self._listener: asyncio.Task[None] | None = None
        self._message_tasks: set[asyncio.Task[None]] = set()

    def channel(self, name: str) -> str:
        return f"{self._channel_prefix}{name}"

    async def send(self, target: str, payload: dict[str, Any]) -> None:
        envelope = RelayEnvelope(sender=self._name, payload=payload)
        await self._client.publish(self.channel(target), envelope.model_dump_json(by_alias=True))

    async def start(self, handler: MessageHandler) -> None:
        self._listener = asyncio.create_task(self._listen(handler))
        logger.info("relay_started", channel=self.channel(self._name))

    async def stop(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None
        for task in list(self._message_tasks):
            task.cancel()
        await self._client.aclose()
        logger.info("relay_stopped")

    async def _listen(self, handler: MessageHandler) -> None:
        while True:
            pubsub = self._client.pubsub(ignore_subscribe_messages=True)
            try:
                await pubsub.subscribe(self.channel(self._name))
                logger.info("relay_connected", channel=self.channel(self._name))
                async for message in pubsub.listen():
                    if message["type"] != "message":
                        continue
                    self._dispatch(handler, message["data"])
            except RedisError as e:
                logger.warning("relay_disconnected", error=str(e))
            except Exception:
                logger.exception("relay_listener_failed")
            finally:
                await pubsub.aclose()
            await asyncio.sleep(RECONNECT_DELAY_SECONDS)

    def _dispatch(self, handler: MessageHandler, data: str) -> None:
        try:
            envelope = RelayEnvelope.model_validate_json(data)
        except pydantic.ValidationError:
            logger.warning("relay_message_malformed", data=data[:200])
            return

        task = asyncio.create_task(self._handle(handler, envelope))
        self._message_tasks.add(task)
        task.add_done_callback(self._message_tasks.discard)

    async def _handle(self, handler: MessageHandler, envelope: RelayEnvelope) -> None:
        try:
            await handler(envelope)
        except Exception:
            logger.exception("relay_handler_failed", sender=envelope.sender)
