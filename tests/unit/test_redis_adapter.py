"""Unit tests for publishing transfer events to Redis"""
import json

import fakeredis
import pytest

from transfers.adapters import redis_adapter
from transfers.domain.events import DuplicateEventRejected, TransferUpdated


@pytest.fixture
def fake_redis(monkeypatch):
    client = fakeredis.FakeRedis()
    redis_adapter.set_client(client)
    monkeypatch.setenv("PUBLISH_TRANSFER_EVENTS", "true")
    return client


def _next_message(pubsub, attempts=20):
    for _ in range(attempts):
        message = pubsub.get_message(ignore_subscribe_messages=True, timeout=0.1)
        if message is not None:
            return message
    return None


def test_publish_serializes_event_with_type(fake_redis):
    pubsub = fake_redis.pubsub()
    pubsub.subscribe("transfers:updates")
    event = TransferUpdated(
        transfer_id="tr_1",
        current_status="settled",
        is_terminal=True,
        event_count=3,
        warning_types=[],
    )

    assert redis_adapter.publish("transfers:updates", event) is True

    message = _next_message(pubsub)
    assert message is not None
    payload = json.loads(message["data"])
    assert payload["event_type"] == "TransferUpdated"
    assert payload["transfer_id"] == "tr_1"
    assert payload["current_status"] == "settled"
    assert payload["cause"] == "event"


def test_publish_disabled_does_not_touch_redis(monkeypatch):
    monkeypatch.setenv("PUBLISH_TRANSFER_EVENTS", "false")

    class Exploding:
        def publish(self, *args):
            raise AssertionError("redis should not be called")

    redis_adapter.set_client(Exploding())

    event = DuplicateEventRejected(transfer_id="tr_1", event_id="evt_1")
    assert redis_adapter.publish("transfers:updates", event) is False


def test_publish_retries_then_reraises(monkeypatch):
    monkeypatch.setenv("PUBLISH_TRANSFER_EVENTS", "true")
    calls = []

    class Flaky:
        def publish(self, *args):
            calls.append(args)
            raise ConnectionError("redis down")

    redis_adapter.set_client(Flaky())

    with pytest.raises(ConnectionError):
        redis_adapter.publish("transfers:updates", DuplicateEventRejected("tr_1", "evt_1"))

    assert len(calls) == 3
