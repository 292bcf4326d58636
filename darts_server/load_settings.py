import logging
import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logging.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


redis_host = os.getenv("REDIS_HOST", "redis")
redis_port = _int_env("REDIS_PORT", 6379)
redis_db = _int_env("REDIS_DB", 0)
redis_password = os.getenv("REDIS_PASSWORD") or None

throw_cooldown_ms = _int_env("THROW_COOLDOWN_MS", 500)
game_ttl_seconds = _int_env("GAME_TTL_SECONDS", 7 * 24 * 60 * 60)
history_limit = _int_env("HISTORY_LIMIT", 50)
default_darts = _int_env("DEFAULT_DARTS", 10)
leaderboard_size = _int_env("LEADERBOARD_SIZE", 10)


def _log_level_env(name: str, default: str = "INFO") -> str:
    level = (os.getenv(name) or default).upper()
    if not isinstance(logging.getLevelName(level), int):
        logging.warning(f"Ignoring unknown {name}={level!r}, using {default}")
        return default
    return level


log_level = _log_level_env("LOG_LEVEL")

if __name__ == "__main__":
    print(redis_host, redis_port, redis_db, throw_cooldown_ms, game_ttl_seconds, history_limit)
