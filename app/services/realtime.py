"""
Row-level change feed over Redis pub/sub.

Writers publish INSERT/UPDATE/DELETE events after their transaction commits;
each event goes to one channel per row (`changes:<table>:<row id>`), so a
listener only hears about the row it watches. The WebSocket dashboard
channel is the main listener.

Delivery order between a client's own write and a pushed event is not
guaranteed, so consumers fold events through merge_candidate_event, which
keeps the newest row by `updated_at` and drops stale ones.
"""

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import redis
import redis.asyncio as aioredis

from app.core.config import settings

logger = logging.getLogger(__name__)

EVENT_TYPES = frozenset({"INSERT", "UPDATE", "DELETE"})


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str
    new: Dict[str, Any]
    old: Optional[Dict[str, Any]] = None

    @property
    def row(self) -> Dict[str, Any]:
        """Row the event is about; DELETE events describe the old row."""
        if self.event == "DELETE":
            return self.old or self.new
        return self.new

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, payload: str) -> Optional["ChangeEvent"]:
        try:
            data = json.loads(payload)
            return cls(table=data["table"], event=data["event"], new=data["new"], old=data.get("old"))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed change message: {e}")
            return None


class ChangeFeed:
    """
    Publishes and subscribes to row changes through Redis.

    Publishing uses a shared synchronous client, since writers run in
    request worker threads. Each subscription opens its own asyncio client,
    bound to the event loop of the connection that asked for it.
    """

    def __init__(self, redis_url: str, prefix: str = "changes"):
        self.redis_url = redis_url
        self.prefix = prefix
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    def channel(self, table: str, row_id: Any) -> str:
        return f"{self.prefix}:{table}:{row_id}"

    def publish(
        self,
        table: str,
        event: str,
        new: Dict[str, Any],
        old: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Publish a row change to the row's channel.

        A Redis failure is logged and swallowed so the writer's request is
        not affected; the write itself is already committed.

        Returns:
            Number of listeners Redis delivered the event to (0 on failure)
        """
        change = ChangeEvent(table=table, event=event.upper(), new=dict(new), old=old)
        if change.event not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event}")

        channel = self.channel(table, change.row.get("id"))
        try:
            return self.client.publish(channel, change.to_json())
        except redis.RedisError as e:
            logger.error(f"Failed to publish {change.event} on {channel}: {e}")
            return 0

    @asynccontextmanager
    async def subscribe(self, table: str, row_id: Any) -> AsyncIterator[AsyncIterator[ChangeEvent]]:
        """
        Listen to one row's changes.

        The subscription is live once the context is entered, so anything
        published afterwards is delivered.

        Usage:
            async with change_feed.subscribe("candidates", candidate_id) as changes:
                async for change in changes:
                    ...
        """
        channel = self.channel(table, row_id)
        client = aioredis.from_url(self.redis_url, decode_responses=True)
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(channel)
            logger.debug(f"Subscribed to {channel}")
            yield self._events(pubsub)
        finally:
            try:
                await pubsub.unsubscribe(channel)
            finally:
                await pubsub.aclose()
                await client.aclose()
            logger.debug(f"Unsubscribed from {channel}")

    @staticmethod
    async def _events(pubsub) -> AsyncIterator[ChangeEvent]:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            change = ChangeEvent.from_json(message["data"])
            if change is not None:
                yield change

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False


def _as_utc(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def merge_candidate_event(
    current: Optional[Dict[str, Any]],
    incoming: Dict[str, Any],
) -> Tuple[Dict[str, Any], bool]:
    """
    Merge an incoming candidate row into local state (last write wins).

    Returns:
        (state, applied) where applied is False when the incoming row is older
        than the local one and was dropped.
    """
    if current is None:
        return dict(incoming), True

    current_ts = _as_utc(current.get("updated_at"))
    incoming_ts = _as_utc(incoming.get("updated_at"))

    # Without both timestamps there is nothing to order by; take the push
    if current_ts is None or incoming_ts is None or incoming_ts >= current_ts:
        merged = dict(current)
        merged.update(incoming)
        return merged, True

    return current, False


change_feed = ChangeFeed(settings.REDIS_URL)
