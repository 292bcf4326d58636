import fakeredis
import pytest

from darts_server.models.dc_models import PlayerModel
from darts_server.services.game_session import GameSessionService
from darts_server.services.leaderboard import LeaderboardService


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
async def redis(fake_server):
    client = fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def player():
    return PlayerModel(player_id="t2_abcdef123456", player_name="bullseye_bob", table_id="t3_table1")


@pytest.fixture
def leaderboard(redis):
    return LeaderboardService(redis)


@pytest.fixture
def game_session(redis, leaderboard):
    return GameSessionService(redis, leaderboard)
