"""Household change notifications over Redis pub/sub."""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import redis
import redis.asyncio as aioredis

from src.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)
settings = get_settings()

CHANNEL_PREFIX = "household:"


class HouseholdEventType(StrEnum):
    """Event types for household stock changes."""

    # Product events
    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"

    # Batch events
    BATCH_CREATED = "batch_created"
    BATCH_UPDATED = "batch_updated"
    BATCH_DELETED = "batch_deleted"
    STOCK_CONSUMED = "stock_consumed"
    BATCH_MOVED = "batch_moved"
    STOCK_RECEIVED = "stock_received"

    # Shopping list events
    SHOPPING_CREATED = "shopping_created"
    SHOPPING_UPDATED = "shopping_updated"
    SHOPPING_DELETED = "shopping_deleted"

    # Emitted by the engine itself after reconciling the shopping list
    STOCK_RECONCILED = "stock_reconciled"


def household_channel(household_id: int) -> str:
    return f"{CHANNEL_PREFIX}{household_id}"


def parse_household_channel(channel: str | bytes) -> int | None:
    """Extract the household ID from a channel name, if it is one of ours."""
    if isinstance(channel, bytes):
        channel = channel.decode("utf-8")
    if not channel.startswith(CHANNEL_PREFIX):
        return None
    try:
        return int(channel[len(CHANNEL_PREFIX) :])
    except ValueError:
        return None


# Synchronous Redis client for use in API endpoints
_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get synchronous Redis client for publishing from API endpoints."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(settings.redis_url)
    return _sync_redis


def publish_household_event(
    household_id: int, event_type: HouseholdEventType, data: dict | None = None
) -> None:
    """Publish an event to a household's Redis channel.

    Called after every committed mutation so other members' clients (and the
    change listener) know to recompute.

    Args:
        household_id: The household whose data changed
        event_type: Type of event (batch_created, stock_consumed, etc.)
        data: Optional event payload
    """
    if not settings.publish_events:
        return
    try:
        redis_client = get_sync_redis()
        channel = household_channel(household_id)
        message = {
            "type": event_type,
            "household_id": household_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": data or {},
        }
        redis_client.publish(channel, json.dumps(message))
        logger.debug(f"Published {event_type} to {channel}")
    except Exception as e:
        # Don't fail the request if pub/sub fails
        logger.error(f"Failed to publish household event: {e}")


class RealtimeService:
    """Async Redis pub/sub subscriber for household change events."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(settings.redis_url)
        return self._redis

    async def subscribe(self, pattern: str = f"{CHANNEL_PREFIX}*") -> AsyncIterator[dict]:
        """Pattern-subscribe to household channels and yield decoded events."""
        redis_conn = await self._get_redis()
        self._pubsub = redis_conn.pubsub()
        await self._pubsub.psubscribe(pattern)

        try:
            async for message in self._pubsub.listen():
                if message["type"] != "pmessage":
                    continue
                try:
                    data = json.loads(message["data"])
                except json.JSONDecodeError:
                    logger.warning(f"Invalid JSON in pub/sub message: {message['data']}")
                    continue
                if "household_id" not in data:
                    data["household_id"] = parse_household_channel(message["channel"])
                yield data
        finally:
            if self._pubsub:
                await self._pubsub.punsubscribe(pattern)

    async def cleanup(self) -> None:
        """Clean up Redis connections."""
        if self._pubsub:
            await self._pubsub.close()
        if self._redis:
            await self._redis.close()
