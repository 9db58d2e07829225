"""
Clients Redis.
- create_redis: client synchrone pour la messagerie (MessageStore)
- create_async_redis: client asyncio pour FastAPILimiter
"""
import redis
import redis.asyncio as aioredis
from marketplace.config import REDIS_URL, RATE_LIMIT_REDIS_URL


def create_redis(url: str = REDIS_URL) -> redis.Redis:
    # La connexion est paresseuse: aucune I/O avant la première commande
    return redis.Redis.from_url(url, encoding="utf-8", decode_responses=True)


def create_async_redis(url: str = RATE_LIMIT_REDIS_URL) -> aioredis.Redis:
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)
