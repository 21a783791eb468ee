"""Publish/subscribe topic carrying JSON alert payloads.

Messages travel as UTF-8 JSON bytes, the same encoding a managed pub/sub
service would carry, and are decoded before subscribers see them. Delivery
is at-least-once from the subscriber's point of view: nothing stops the same
bytes from being delivered twice.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Deque, Dict, List, Mapping, Union

from .logging import logger

Subscriber = Callable[[Dict[str, Any]], Union[Awaitable[None], None]]


def json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def encode_message(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(dict(payload), default=json_default).encode("utf-8")


def decode_message(data: bytes) -> Dict[str, Any]:
    decoded = json.loads(data.decode("utf-8"))
    if not isinstance(decoded, dict):
        raise ValueError("pub/sub message must be a JSON object")
    return decoded


class Topic(ABC):
    """A single named topic."""

    name: str

    @abstractmethod
    async def publish(self, payload: Mapping[str, Any]) -> str:
        """Publish ``payload`` and return the message id."""

    @abstractmethod
    def subscribe(self, callback: Subscriber) -> None:
        """Register ``callback`` for every published message."""


@dataclass
class InMemoryTopic(Topic):
    """In-process topic delivering each message to all subscribers.

    Subscriber errors are logged and do not reach the publisher. There is no
    retry and no dead-letter queue. Only the last ``history_size`` encoded
    messages are kept in ``published``; the default keeps none.
    """

    name: str = "order-system-alerts"
    subscribers: List[Subscriber] = field(default_factory=list)
    history_size: int = 0
    published: Deque[bytes] = field(init=False)

    def __post_init__(self) -> None:
        self.published = deque(maxlen=self.history_size)

    def subscribe(self, callback: Subscriber) -> None:
        self.subscribers.append(callback)

    async def publish(self, payload: Mapping[str, Any]) -> str:
        data = encode_message(payload)
        self.published.append(data)
        message_id = uuid.uuid4().hex
        await self.deliver(data)
        return message_id

    async def deliver(self, data: bytes) -> None:
        """Hand raw message bytes to every subscriber."""

        if not self.subscribers:
            return
        message = decode_message(data)
        results = await asyncio.gather(
            *(self._invoke(cb, dict(message)) for cb in self.subscribers),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error("subscriber_error", topic=self.name, error=str(result))

    @staticmethod
    async def _invoke(callback: Subscriber, message: Dict[str, Any]) -> None:
        res = callback(message)
        if asyncio.iscoroutine(res):
            await res
