# Redis access for game states and leaderboards
from redis.asyncio import Redis
from redis.exceptions import RedisError
from typing import Dict, List, Optional, Tuple
import logging

from darts_server.converter import data_converter
from darts_server.errors import StoreUnavailableError
from darts_server.models.schema_models import GameStateSchema


def key_user_game(table_id: str, player_id: str) -> str:
    """Game state of one player; players of the same table never collide."""
    return f"darts:usergame:{table_id}:{player_id}"


def key_leaderboard(table_id: str) -> str:
    return f"darts:lb:{table_id}"


def key_leaderboard_names(table_id: str) -> str:
    return f"darts:lbnames:{table_id}"


def channel_preview(table_id: str) -> str:
    return f"darts:preview:{table_id}"


class ReadData:
    @staticmethod
    async def read_game_state(redis: Redis, table_id: str, player_id: str) -> Optional[GameStateSchema]:
        """Read the game state of the player

        Args:
            redis (Redis): Redis connection object
            table_id (str): To identify the game instance
            player_id (str): To identify the player

        Returns:
            Optional[GameStateSchema]: None if no game is stored or it expired
        """
        try:
            raw = await redis.get(key_user_game(table_id, player_id))
        except RedisError as e:
            logging.error(f"Failed to read game state: {e}")
            raise StoreUnavailableError("read_game_state", str(e)) from e
        return data_converter.convert_json_to_gamestate(raw)


class CreateData:
    @staticmethod
    async def create_game_state(
        redis: Redis, table_id: str, player_id: str, state: GameStateSchema, ttl_seconds: int
    ) -> None:
        """Save the game state of the player and refresh its expiry

        Args:
            redis (Redis): Redis connection object
            table_id (str): To identify the game instance
            player_id (str): To identify the player
            state (GameStateSchema): Game state to store, overwriting any previous one
            ttl_seconds (int): Expiry of the stored state
        """
        key = key_user_game(table_id, player_id)
        try:
            await redis.set(key, data_converter.convert_gamestate_to_json(state))
        except RedisError as e:
            logging.error(f"Failed to save game state: {e}")
            raise StoreUnavailableError("create_game_state", str(e)) from e

        # The state is already saved; a missing expiry only delays reclamation.
        try:
            await redis.expire(key, ttl_seconds)
        except RedisError as e:
            logging.warning(f"Failed to set expiry on {key}: {e}")


class DeleteData:
    @staticmethod
    async def delete_game_state(redis: Redis, table_id: str, player_id: str) -> None:
        try:
            await redis.delete(key_user_game(table_id, player_id))
        except RedisError as e:
            logging.error(f"Failed to delete game state: {e}")
            raise StoreUnavailableError("delete_game_state", str(e)) from e


class LeaderboardData:
    @staticmethod
    async def upsert_if_higher(redis: Redis, table_id: str, member: str, score: int) -> bool:
        """Store the score only if the member is new or the score beats the stored one

        Returns:
            bool: True if the sorted set changed
        """
        changed = await redis.zadd(key_leaderboard(table_id), {member: score}, gt=True, ch=True)
        return bool(changed)

    @staticmethod
    async def top_descending(redis: Redis, table_id: str, count: int) -> List[Tuple[str, float]]:
        if count <= 0:
            return []
        return await redis.zrevrange(key_leaderboard(table_id), 0, count - 1, withscores=True)

    @staticmethod
    async def score_of(redis: Redis, table_id: str, member: str) -> Optional[float]:
        return await redis.zscore(key_leaderboard(table_id), member)

    @staticmethod
    async def update_player_name(redis: Redis, table_id: str, member: str, player_name: str) -> None:
        await redis.hset(key_leaderboard_names(table_id), member, player_name)

    @staticmethod
    async def read_player_names(redis: Redis, table_id: str, members: List[str]) -> Dict[str, str]:
        if not members:
            return {}
        names = await redis.hmget(key_leaderboard_names(table_id), members)
        return {member: name for member, name in zip(members, names) if name}
