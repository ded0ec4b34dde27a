"""Redis adapter for publishing transfer events following Cosmic Python pattern."""

import json
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Optional

import redis
from tenacity import retry, stop_after_attempt, wait_fixed

import config
from shared.domain.commands import Event

logger = logging.getLogger(__name__)

_client: Optional[redis.Redis] = None


def get_client() -> redis.Redis:
    """Connect lazily so importing this module never needs a running Redis."""
    global _client
    if _client is None:
        _client = redis.Redis(**config.get_redis_host_and_port())
    return _client


def set_client(client: Optional[redis.Redis]):
    global _client
    _client = client


def _serialize_event(event: Event) -> str:
    """Serialize event to JSON, handling datetime objects."""
    event_dict = asdict(event)
    event_dict["event_type"] = type(event).__name__

    for key, value in event_dict.items():
        if isinstance(value, datetime):
            event_dict[key] = value.isoformat()

    return json.dumps(event_dict)


@retry(stop=stop_after_attempt(3), wait=wait_fixed(0.2), reraise=True)
def _publish_with_retry(channel: str, message: str):
    get_client().publish(channel, message)


def publish(channel: str, event: Event) -> bool:
    """
    Publish event to Redis channel.

    Returns:
        False when publishing is disabled by configuration, True otherwise
    """
    if not config.get_publish_enabled():
        logger.debug("publishing disabled, dropping %s", type(event).__name__)
        return False

    logger.info("publishing: channel=%s, event=%s", channel, event)
    _publish_with_retry(channel, _serialize_event(event))
    return True
