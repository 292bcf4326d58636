import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis

from darts_server.authentication.player_identity import PlayerIdentity
from darts_server.db import get_redis
from darts_server.load_settings import (
    default_darts,
    game_ttl_seconds,
    history_limit,
    leaderboard_size,
    throw_cooldown_ms,
)
from darts_server.models.dc_models import (
    GameStateResponseModel,
    LeaderboardResponseModel,
    NewGameModel,
    PlayerModel,
    ThrowModel,
    ThrowResponseModel,
)
from darts_server.redis_subscriber import LeaderboardSubscriber
from darts_server.services.game_session import GameSessionService, now_ms
from darts_server.services.leaderboard import LeaderboardService
from darts_server.services.preview import PreviewNotifier, scheduler

game_router = APIRouter()
player_identity = PlayerIdentity()


async def get_preview_notifier(redis: Redis = Depends(get_redis)) -> Optional[PreviewNotifier]:
    return PreviewNotifier(redis, scheduler)


async def get_leaderboard_service(
    redis: Redis = Depends(get_redis),
    notifier: Optional[PreviewNotifier] = Depends(get_preview_notifier),
) -> LeaderboardService:
    return LeaderboardService(redis, notifier)


async def get_game_session_service(
    redis: Redis = Depends(get_redis),
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
) -> GameSessionService:
    return GameSessionService(
        redis,
        leaderboard,
        cooldown_ms=throw_cooldown_ms,
        ttl_seconds=game_ttl_seconds,
        history_limit=history_limit,
        default_darts=default_darts,
    )


class HealthAPI:
    @staticmethod
    @game_router.get("/api/ping")
    async def ping():
        return {"ok": True, "message": "pong", "time": now_ms()}


class GameAPI:
    @staticmethod
    @game_router.post("/api/game/new", response_model=GameStateResponseModel)
    async def new_game(
        new_game: Optional[NewGameModel] = None,
        player: PlayerModel = Depends(player_identity.check_player_data),
        game_session: GameSessionService = Depends(get_game_session_service),
    ) -> GameStateResponseModel:
        """Start a new game. Overwrites any existing game of this player on this table.

        Args:
            new_game (Optional[NewGameModel]): darts_total, defaults to DEFAULT_DARTS
            player (PlayerModel): Identity supplied by the hosting platform

        Returns:
            GameStateResponseModel: The full initial game state
        """
        darts_total = new_game.darts_total if new_game is not None else None
        state = await game_session.new_game(player, darts_total)
        return GameStateResponseModel.from_state(state)

    @staticmethod
    @game_router.get("/api/game/state", response_model=GameStateResponseModel)
    async def get_state(
        player: PlayerModel = Depends(player_identity.check_player_data),
        game_session: GameSessionService = Depends(get_game_session_service),
    ) -> GameStateResponseModel:
        state = await game_session.resume(player)
        return GameStateResponseModel.from_state(state)

    @staticmethod
    @game_router.post("/api/game/throw", response_model=ThrowResponseModel)
    async def throw(
        throw_info: ThrowModel,
        player: PlayerModel = Depends(player_identity.check_player_data),
        game_session: GameSessionService = Depends(get_game_session_service),
    ) -> ThrowResponseModel:
        """Receive a throw from the client and resolve it on the server

        The response echoes the clamped aim and radius the server actually used.

        Args:
            throw_info (ThrowModel): game_id, raw aim, raw radius and client elapsed time
            player (PlayerModel): Identity supplied by the hosting platform
        """
        logging.debug(f"Throw request from {player.player_id}: {throw_info}")
        record = await game_session.throw(
            player,
            throw_info.game_id,
            throw_info.aim_x,
            throw_info.aim_y,
            throw_info.radius,
            throw_info.client_elapsed_ms,
        )
        return ThrowResponseModel(result=record)


class LeaderboardAPI:
    @staticmethod
    @game_router.get("/api/leaderboard", response_model=LeaderboardResponseModel)
    async def get_leaderboard(
        table_id: str = Depends(player_identity.check_table_id),
        leaderboard: LeaderboardService = Depends(get_leaderboard_service),
    ) -> LeaderboardResponseModel:
        entries = await leaderboard.top_k(table_id, leaderboard_size)
        return LeaderboardResponseModel(entries=entries)

    @staticmethod
    @game_router.get("/api/leaderboard/stream")
    async def stream_leaderboard(
        table_id: str = Depends(player_identity.check_table_id),
        redis: Redis = Depends(get_redis),
        leaderboard: LeaderboardService = Depends(get_leaderboard_service),
    ):
        subscriber = LeaderboardSubscriber(leaderboard, table_id, leaderboard_size)
        return StreamingResponse(
            subscriber.event_generator(redis),
            media_type="text/event-stream; charset=utf-8",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )
