"""
Tests for the game session state machine against an in-memory Redis.
"""
import fakeredis
import pytest

from darts_server.crud import key_user_game
from darts_server.errors import (
    NoActiveSessionError,
    RoundCompleteError,
    SessionMismatchError,
    StoreUnavailableError,
    TooFastError,
)
from darts_server.services.game_session import GAME_TTL_SECONDS, GameSessionService
from darts_server.services.leaderboard import LeaderboardService
from tests.fakes import DownRedis, ExpireFailingRedis, SortedSetFailingRedis


async def throw_all(game_session, player, state, start=10_000, step=500):
    records = []
    now = start
    for _ in range(state.darts_total):
        records.append(await game_session.throw(player, state.game_id, 0.0, 0.3, 0.2, 1_000, now=now))
        now += step
    return records


async def test_new_game_initial_state(game_session, player):
    state = await game_session.new_game(player, 12, now=1_000)
    assert state.darts_total == 12
    assert state.darts_left == 12
    assert state.total_score == 0
    assert state.throw_index == 0
    assert state.history == []
    assert state.last_throw_at_ms is None
    assert state.created_at_ms == 1_000
    assert 0 <= state.seed32 <= 0xFFFFFFFF


@pytest.mark.parametrize("requested, expected", [(None, 10), (0, 1), (31, 30), (5.5, 5)])
async def test_new_game_clamps_darts(game_session, player, requested, expected):
    state = await game_session.new_game(player, requested)
    assert state.darts_total == expected


async def test_new_game_overwrites_previous(game_session, player):
    first = await game_session.new_game(player, 10, now=1_000)
    await game_session.throw(player, first.game_id, 0.0, 0.0, 0.1, now=2_000)
    second = await game_session.new_game(player, 5, now=3_000)
    assert second.game_id != first.game_id
    resumed = await game_session.resume(player)
    assert resumed == second
    assert resumed.history == []


async def test_new_game_sets_expiry(game_session, player, redis):
    await game_session.new_game(player)
    ttl = await redis.ttl(key_user_game(player.table_id, player.player_id))
    assert 0 < ttl <= GAME_TTL_SECONDS


async def test_resume_without_game(game_session, player):
    assert await game_session.resume(player) is None


async def test_resume_ignores_corrupt_state(game_session, player, redis):
    await redis.set(key_user_game(player.table_id, player.player_id), "{not json")
    assert await game_session.resume(player) is None
    await redis.set(key_user_game(player.table_id, player.player_id), '{"darts_left": 3}')
    assert await game_session.resume(player) is None


async def test_players_and_tables_are_isolated(game_session, player):
    other_player = player.model_copy(update={"player_id": "t2_other"})
    other_table = player.model_copy(update={"table_id": "t3_table2"})
    await game_session.new_game(player)
    assert await game_session.resume(other_player) is None
    assert await game_session.resume(other_table) is None


async def test_full_round_then_session_is_gone(game_session, player):
    state = await game_session.new_game(player, 10)
    records = await throw_all(game_session, player, state)

    assert [r.darts_left for r in records] == list(range(9, -1, -1))
    assert [r.throw_index for r in records] == list(range(10))
    assert records[-1].total_score == sum(r.segment.points for r in records)
    assert await game_session.resume(player) is None

    with pytest.raises(NoActiveSessionError):
        await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=100_000)


async def test_invariants_hold_after_each_throw(game_session, player):
    state = await game_session.new_game(player, 6)
    now = 10_000
    for _ in range(5):
        await game_session.throw(player, state.game_id, 0.2, -0.4, 0.3, now, now=now)
        now += 600
        stored = await game_session.resume(player)
        assert stored.darts_left == stored.darts_total - stored.throw_index
        assert stored.total_score == sum(r.segment.points for r in stored.history)
        assert stored.last_throw_at_ms == now - 600


async def test_cooldown_boundary(game_session, player):
    state = await game_session.new_game(player)
    await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_000)
    with pytest.raises(TooFastError):
        await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_499)
    record = await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_500)
    assert record.throw_index == 1


async def test_rejected_throw_leaves_state_untouched(game_session, player):
    state = await game_session.new_game(player)
    await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_000)
    before = await game_session.resume(player)
    with pytest.raises(TooFastError):
        await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_100)
    with pytest.raises(SessionMismatchError):
        await game_session.throw(player, "stale-game", 0.0, 0.0, 0.1, now=20_000)
    assert await game_session.resume(player) == before


async def test_game_id_mismatch_after_new_game(game_session, player):
    old = await game_session.new_game(player)
    await game_session.new_game(player)
    with pytest.raises(SessionMismatchError):
        await game_session.throw(player, old.game_id, 0.0, 0.0, 0.1, now=10_000)


async def test_throw_without_game(game_session, player):
    with pytest.raises(NoActiveSessionError):
        await game_session.throw(player, "anything", 0.0, 0.0, 0.1, now=10_000)


async def test_history_is_capped(redis, leaderboard, player):
    game_session = GameSessionService(redis, leaderboard, history_limit=3)
    state = await game_session.new_game(player, 30)
    now = 10_000
    for _ in range(5):
        await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=now)
        now += 500
    stored = await game_session.resume(player)
    assert [r.throw_index for r in stored.history] == [2, 3, 4]
    assert stored.throw_index == 5


async def test_completed_state_left_behind_rejects_throws(redis, leaderboard, player):
    """If clearing a finished game fails, the stored state still refuses throws."""
    game_session = GameSessionService(redis, leaderboard)
    state = await game_session.new_game(player, 1)
    finished = state.model_copy(update={"darts_left": 0, "throw_index": 1})
    await redis.set(key_user_game(player.table_id, player.player_id), finished.model_dump_json())
    with pytest.raises(RoundCompleteError):
        await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_000)


async def test_leaderboard_tracks_best_total(game_session, leaderboard, player):
    state = await game_session.new_game(player, 3)
    records = await throw_all(game_session, player, state)
    assert await leaderboard.score_of(player.table_id, player.player_id) == records[-1].total_score

    entries = await leaderboard.top_k(player.table_id, 10)
    assert entries[0].player == "bullseye_bob"


async def test_expire_failure_does_not_fail_mutation(fake_server, player):
    redis = ExpireFailingRedis(server=fake_server, decode_responses=True)
    game_session = GameSessionService(redis, LeaderboardService(redis))
    state = await game_session.new_game(player)
    record = await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_000)
    assert record.darts_left == state.darts_total - 1
    assert (await game_session.resume(player)).throw_index == 1


async def test_leaderboard_failure_does_not_fail_throw(fake_server, player):
    redis = SortedSetFailingRedis(server=fake_server, decode_responses=True)
    game_session = GameSessionService(redis, LeaderboardService(redis))
    state = await game_session.new_game(player, 1)
    record = await game_session.throw(player, state.game_id, 0.0, 0.0, 0.1, now=10_000)
    assert record.darts_left == 0
    assert await game_session.resume(player) is None


async def test_store_failure_is_surfaced(fake_server, player):
    redis = DownRedis(server=fake_server, decode_responses=True)
    game_session = GameSessionService(redis, LeaderboardService(redis))
    with pytest.raises(StoreUnavailableError):
        await game_session.resume(player)
    with pytest.raises(StoreUnavailableError):
        await game_session.throw(player, "g", 0.0, 0.0, 0.1, now=10_000)


async def test_identical_inputs_replay_identically(player):
    """Same stored state and same request give the same authoritative outcome."""
    redis_a = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    redis_b = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    session_a = GameSessionService(redis_a, LeaderboardService(redis_a))
    session_b = GameSessionService(redis_b, LeaderboardService(redis_b))

    state = await session_a.new_game(player, 5, now=1_000)
    await redis_b.set(key_user_game(player.table_id, player.player_id), state.model_dump_json())

    first = await session_a.throw(player, state.game_id, 0.1, 0.2, 0.25, 4321, now=5_000)
    second = await session_b.throw(player, state.game_id, 0.1, 0.2, 0.25, 4321, now=5_000)
    assert first == second
