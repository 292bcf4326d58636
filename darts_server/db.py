from redis.asyncio import Redis

from darts_server.load_settings import redis_db, redis_host, redis_password, redis_port

# Centralized client so routers and services share one connection pool.
redis = Redis(
    host=redis_host,
    port=redis_port,
    db=redis_db,
    password=redis_password,
    decode_responses=True,
    health_check_interval=30,
)


async def get_redis() -> Redis:
    return redis
