"""Game session service.

- Routers do not touch Redis directly; they call this module.
- Validation runs fully before anything is saved, so a rejected throw never
  leaves a partially updated state behind.
- Per-player state is not locked: two throws racing past the cooldown
  check resolve as last write wins.
"""
import logging
import secrets
import time
from typing import Optional

from redis.asyncio import Redis
from uuid6 import uuid7

from darts_server.crud import CreateData, DeleteData, ReadData
from darts_server.domain.throw_rules import (
    DEFAULT_COOLDOWN_MS,
    DEFAULT_DARTS,
    DEFAULT_HISTORY_LIMIT,
    apply_throw,
    clamp_darts_total,
    resolve_throw,
)
from darts_server.errors import NoActiveSessionError, SessionMismatchError, StoreUnavailableError
from darts_server.models.dc_models import PlayerModel
from darts_server.models.schema_models import GameStateSchema, ThrowRecordSchema
from darts_server.services.leaderboard import LeaderboardService

GAME_TTL_SECONDS = 7 * 24 * 60 * 60


def now_ms() -> int:
    return int(time.time() * 1000)


def random_seed32() -> int:
    return secrets.randbits(32)


class GameSessionService:
    def __init__(
        self,
        redis: Redis,
        leaderboard: LeaderboardService,
        *,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
        ttl_seconds: int = GAME_TTL_SECONDS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        default_darts: int = DEFAULT_DARTS,
    ):
        self.redis = redis
        self.leaderboard = leaderboard
        self.cooldown_ms = cooldown_ms
        self.ttl_seconds = ttl_seconds
        self.history_limit = history_limit
        self.default_darts = default_darts

    async def new_game(
        self, player: PlayerModel, darts_total: Optional[float] = None, now: Optional[int] = None
    ) -> GameStateSchema:
        """Start a new game, overwriting whatever the player had on this table

        Args:
            player (PlayerModel): The player starting the game
            darts_total (Optional[float]): Requested darts, clamped to [1, 30]
            now (Optional[int]): Server time in ms, defaults to the current time

        Returns:
            GameStateSchema: The freshly stored game state
        """
        total = clamp_darts_total(darts_total, default=self.default_darts)
        state = GameStateSchema(
            game_id=str(uuid7()),
            created_at_ms=now if now is not None else now_ms(),
            seed32=random_seed32(),
            darts_total=total,
            darts_left=total,
            total_score=0,
            throw_index=0,
            history=[],
        )
        await CreateData.create_game_state(
            self.redis, player.table_id, player.player_id, state, self.ttl_seconds
        )
        logging.info(f"New game {state.game_id} for {player.player_id} on table {player.table_id} ({total} darts)")
        return state

    async def resume(self, player: PlayerModel) -> Optional[GameStateSchema]:
        """Return the stored game unchanged, None if there is none or it expired."""
        return await ReadData.read_game_state(self.redis, player.table_id, player.player_id)

    async def throw(
        self,
        player: PlayerModel,
        game_id: str,
        aim_x: Optional[float],
        aim_y: Optional[float],
        radius: Optional[float],
        client_elapsed_ms: Optional[float] = None,
        now: Optional[int] = None,
    ) -> ThrowRecordSchema:
        """Resolve and persist one throw

        Args:
            player (PlayerModel): The throwing player
            game_id (str): Game the client believes it is playing
            aim_x (Optional[float]): Raw aim X
            aim_y (Optional[float]): Raw aim Y
            radius (Optional[float]): Raw precision radius
            client_elapsed_ms (Optional[float]): Client elapsed time, used as a nonce
            now (Optional[int]): Server time in ms, defaults to the current time

        Raises:
            NoActiveSessionError: No stored game
            SessionMismatchError: game_id is not the stored game
            RoundCompleteError: No darts left
            TooFastError: Cooldown not elapsed
            StoreUnavailableError: Redis failed

        Returns:
            ThrowRecordSchema: The authoritative throw result
        """
        current = now if now is not None else now_ms()
        state = await ReadData.read_game_state(self.redis, player.table_id, player.player_id)
        if state is None:
            raise NoActiveSessionError()
        if state.game_id != game_id:
            raise SessionMismatchError(state.game_id, game_id)

        record = resolve_throw(
            state, aim_x, aim_y, radius, client_elapsed_ms, current, cooldown_ms=self.cooldown_ms
        )
        new_state = apply_throw(state, record, self.history_limit)

        # From here on the throw must be persisted, the drawn outcome cannot be replayed.
        await CreateData.create_game_state(
            self.redis, player.table_id, player.player_id, new_state, self.ttl_seconds
        )
        logging.info(
            f"Throw {record.throw_index} of game {state.game_id}: {record.segment.label} "
            f"({record.segment.points}), total {record.total_score}, {record.darts_left} left"
        )

        await self.leaderboard.bump(
            player.table_id, player.player_id, new_state.total_score, player.player_name
        )

        if new_state.darts_left <= 0:
            try:
                await DeleteData.delete_game_state(self.redis, player.table_id, player.player_id)
                logging.info(f"Game {state.game_id} complete with {new_state.total_score} points")
            except StoreUnavailableError as e:
                # The saved state has no darts left, further throws are rejected anyway.
                logging.warning(f"Failed to clear completed game {state.game_id}: {e}")

        return record
