"""
In-process change feed for the matches table.

Publishes a signal whenever a match row of a sport changes. Subscribers use
it only as a trigger to re-fetch and rebuild the whole bracket; the payload
is never treated as data.
"""
import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Set

logger = logging.getLogger(__name__)


def channel_for_sport(sport_id: int) -> str:
    return f"matches:{sport_id}"


class MatchChangeFeed:
    """
    asyncio.Queue fan-out keyed by channel.

    Slow subscribers drop messages rather than block publishers.
    """

    def __init__(self, max_queue_size: int = 100):
        self._channels: Dict[str, Set[asyncio.Queue]] = {}
        self._lock = asyncio.Lock()
        self._max_queue_size = max_queue_size

    def _serialize_message(self, message: Dict[str, Any]) -> str:
        return json.dumps(message, sort_keys=True, separators=(',', ':'), default=str)

    async def publish(self, sport_id: int, event: str, match_id: Optional[int] = None) -> int:
        """
        Publish a change signal for a sport.

        Returns:
            Number of subscribers the message was queued for
        """
        message = {
            "event": event,
            "sport_id": sport_id,
            "match_id": match_id,
            "published_at": datetime.utcnow().isoformat(),
        }
        serialized = self._serialize_message(message)
        channel = channel_for_sport(sport_id)

        delivered = 0
        async with self._lock:
            queues = list(self._channels.get(channel, ()))
        for queue in queues:
            try:
                queue.put_nowait(serialized)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Dropping {event} for slow subscriber on {channel}")
        return delivered

    async def subscribe(self, sport_id: int):
        """
        Subscribe to a sport's match changes.

        Yields:
            Parsed message dicts until the feed is closed
        """
        channel = channel_for_sport(sport_id)
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)

        async with self._lock:
            self._channels.setdefault(channel, set()).add(queue)

        try:
            while True:
                serialized = await queue.get()
                if serialized is None:
                    return
                yield json.loads(serialized)
        finally:
            async with self._lock:
                if channel in self._channels:
                    self._channels[channel].discard(queue)
                    if not self._channels[channel]:
                        del self._channels[channel]

    def subscriber_count(self, sport_id: int) -> int:
        return len(self._channels.get(channel_for_sport(sport_id), ()))

    async def close(self) -> None:
        """Signal every subscriber to stop."""
        async with self._lock:
            for queues in self._channels.values():
                for queue in queues:
                    if queue.full():
                        queue.get_nowait()
                    queue.put_nowait(None)
            self._channels.clear()


match_feed = MatchChangeFeed()
