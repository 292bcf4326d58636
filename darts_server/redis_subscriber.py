import json
import logging
from typing import AsyncGenerator

from redis.asyncio import Redis

from darts_server.crud import channel_preview
from darts_server.services.leaderboard import LeaderboardService


class LeaderboardSubscriber:
    """Redis subscriber class to stream leaderboard changes as SSE events."""

    def __init__(self, leaderboard: LeaderboardService, table_id: str, size: int):
        """Initialize LeaderboardSubscriber with the leaderboard service, table_id and page size."""
        self.leaderboard: LeaderboardService = leaderboard
        self.table_id: str = table_id
        self.size: int = size

    async def _leaderboard_event(self) -> str:
        entries = await self.leaderboard.top_k(self.table_id, self.size)
        payload = json.dumps({"ok": True, "entries": [entry.model_dump() for entry in entries]})
        logging.debug(f"Payload: {payload}")
        return f"event: leaderboard_update\ndata: {payload}\n\n"

    async def event_generator(self, redis: Redis) -> AsyncGenerator[str, None]:
        """Event generator to handle SSE events.

        The current leaderboard is sent first, then again after every preview
        notification published for the table.

        Args:
            redis (Redis): Redis connection object.
        """
        yield await self._leaderboard_event()

        channel = channel_preview(self.table_id)
        pubsub = redis.pubsub()
        await pubsub.subscribe(channel)
        try:
            while True:
                msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=None)
                if msg and msg["type"] == "message":
                    yield await self._leaderboard_event()
        finally:
            logging.info("Unsubscribing from channel")
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
