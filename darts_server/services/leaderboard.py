"""
Best-score-per-player leaderboard, one per table.

Members of the sorted set are player ids so that two accounts sharing a
display name keep separate slots; names are stored alongside as metadata.
"""
import logging
from typing import List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from darts_server.crud import LeaderboardData
from darts_server.errors import StoreUnavailableError
from darts_server.models.schema_models import LeaderboardEntrySchema
from darts_server.services.preview import PreviewNotifier

FALLBACK_NAME_LENGTH = 8


def player_display_name(player_id: str, player_name: Optional[str] = None) -> str:
    """Display name when known, else a truncated player id."""
    name = (player_name or "").strip()
    return name if name else player_id[:FALLBACK_NAME_LENGTH]


class LeaderboardService:
    """Leaderboard reads and best-effort score bumps."""

    def __init__(self, redis: Redis, notifier: Optional[PreviewNotifier] = None):
        self.redis = redis
        self.notifier = notifier

    async def bump(
        self, table_id: str, player_id: str, score: int, player_name: Optional[str] = None
    ) -> bool:
        """Raise the player's stored best to `score` if it is higher.

        Never raises: a failed leaderboard update must not fail the throw.

        Returns:
            bool: True if the stored best changed
        """
        try:
            changed = await LeaderboardData.upsert_if_higher(self.redis, table_id, player_id, score)
        except RedisError as e:
            logging.warning(f"Failed to update leaderboard for table {table_id}: {e}")
            return False

        if player_name and player_name.strip():
            try:
                await LeaderboardData.update_player_name(
                    self.redis, table_id, player_id, player_name.strip()
                )
            except RedisError as e:
                logging.warning(f"Failed to store display name of {player_id} on table {table_id}: {e}")

        if changed:
            logging.info(f"Leaderboard best for {player_id} on table {table_id} is now {score}")
            if self.notifier is not None:
                self.notifier.notify(table_id)
        return changed

    async def top_k(self, table_id: str, k: int) -> List[LeaderboardEntrySchema]:
        """Return the k best scores of the table, highest first, ranked from 1."""
        try:
            top = await LeaderboardData.top_descending(self.redis, table_id, k)
            names = await LeaderboardData.read_player_names(
                self.redis, table_id, [member for member, _ in top]
            )
        except RedisError as e:
            logging.error(f"Failed to read leaderboard for table {table_id}: {e}")
            raise StoreUnavailableError("top_k", str(e)) from e

        return [
            LeaderboardEntrySchema(
                player_id=member,
                player=player_display_name(member, names.get(member)),
                score=int(score),
                rank=rank,
            )
            for rank, (member, score) in enumerate(top, start=1)
        ]

    async def score_of(self, table_id: str, player_id: str) -> Optional[int]:
        try:
            score = await LeaderboardData.score_of(self.redis, table_id, player_id)
        except RedisError as e:
            raise StoreUnavailableError("score_of", str(e)) from e
        return None if score is None else int(score)
