"""Fire-and-forget notification of the table's top score.

Runs as a one-shot scheduler job, never on the throw request path.
"""
import json
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from redis.asyncio import Redis
from redis.exceptions import RedisError

from darts_server.crud import LeaderboardData, channel_preview


class PreviewNotifier:
    def __init__(self, redis: Redis, scheduler: AsyncIOScheduler):
        self.redis = redis
        self.scheduler = scheduler

    def notify(self, table_id: str) -> None:
        """Schedule a preview refresh for the table. Scheduling failures are logged and dropped."""
        try:
            self.scheduler.add_job(
                self.publish_preview,
                "date",
                args=[table_id],
                misfire_grace_time=30,
            )
        except Exception as e:
            logging.warning(f"Failed to schedule preview update for table {table_id}: {e}")

    async def publish_preview(self, table_id: str) -> Optional[dict]:
        """Publish the current top score of the table on its preview channel

        Args:
            table_id (str): To identify the game instance

        Returns:
            Optional[dict]: The published payload, None if nothing was published
        """
        try:
            top = await LeaderboardData.top_descending(self.redis, table_id, 1)
            if not top:
                return None
            member, score = top[0]
            names = await LeaderboardData.read_player_names(self.redis, table_id, [member])
            payload = {
                "table_id": table_id,
                "top_score": int(score),
                "player_id": member,
                "player": names.get(member, member[:8]),
            }
            await self.redis.publish(channel_preview(table_id), json.dumps(payload))
            return payload
        except RedisError as e:
            logging.warning(f"Failed to publish preview for table {table_id}: {e}")
            return None


scheduler = AsyncIOScheduler()
