import asyncio
import json
from datetime import datetime, timezone

import pytest

from ordermonitor.pubsub import InMemoryTopic, decode_message, encode_message


def test_subscribers_receive_decoded_payload():
    received = []

    async def async_subscriber(message):
        received.append(("async", message))

    topic = InMemoryTopic(name="order-system-alerts")
    topic.subscribe(async_subscriber)
    topic.subscribe(lambda message: received.append(("sync", message)))
    message_id = asyncio.run(topic.publish({"id": "a1", "severity": "warning"}))

    assert message_id
    assert sorted(kind for kind, _ in received) == ["async", "sync"]
    assert all(msg == {"id": "a1", "severity": "warning"} for _, msg in received)


def test_subscriber_errors_do_not_reach_publisher():
    seen = []

    def broken(message):
        raise RuntimeError("boom")

    topic = InMemoryTopic()
    topic.subscribe(broken)
    topic.subscribe(seen.append)
    asyncio.run(topic.publish({"id": "a2"}))
    assert seen == [{"id": "a2"}]


def test_redelivery_reaches_subscribers_twice():
    seen = []
    topic = InMemoryTopic()
    topic.subscribe(seen.append)
    asyncio.run(topic.publish({"id": "a3"}))
    asyncio.run(topic.deliver(encode_message({"id": "a3"})))
    assert seen == [{"id": "a3"}, {"id": "a3"}]


def test_message_encoding_handles_datetimes():
    ts = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    data = encode_message({"data": {"sampleErrors": [{"timestamp": ts}]}})
    assert json.loads(data)["data"]["sampleErrors"][0]["timestamp"] == ts.isoformat()
    with pytest.raises(ValueError):
        decode_message(b"[1, 2]")


def test_published_history_is_bounded():
    topic = InMemoryTopic()
    for i in range(3):
        asyncio.run(topic.publish({"id": f"m{i}"}))
    assert len(topic.published) == 0

    topic = InMemoryTopic(history_size=2)
    for i in range(5):
        asyncio.run(topic.publish({"id": f"m{i}"}))
    assert [decode_message(m)["id"] for m in topic.published] == ["m3", "m4"]
