from typing import Optional

import orjson
from loguru import logger
from redis import asyncio as aioredis

KEY_PREFIX = "streamline"


class RedisConnectionError(Exception):
    pass


class Redis:
    """Thin cache wrapper. Every key is namespaced with `KEY_PREFIX`."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._redis = aioredis.from_url(self._url, decode_responses=True, encoding="utf-8")
        self.ready = False

    @staticmethod
    def key(*parts: str | int) -> str:
        return ":".join([KEY_PREFIX, *(str(p) for p in parts)])

    async def connect(self) -> bool:
        """Connects with Redis, raises `RedisConnectionError` if not able to connect."""
        logger.info("Connecting to Redis")
        try:
            if await self._redis.ping():
                logger.info("Connected to Redis")
                self.ready = True
                return True
            raise RedisConnectionError("Could not connect to Redis, ping not ponged")

        except aioredis.ConnectionError:
            raise RedisConnectionError("Could not connect to Redis")

    async def disconnect(self) -> None:
        logger.info("Disconnecting from Redis")
        await self._redis.aclose()
        self.ready = False

    async def get(self, key: str) -> Optional[str]:
        v = await self._redis.get(key)
        if v:
            logger.debug(f"Cache hit: {key}")
            return v
        logger.debug(f"Cache miss: {key}")
        return None

    async def set(self, key: str, value: str, ttl: int = 300):
        r = await self._redis.set(key, value, ex=ttl)
        if r:
            logger.debug(f"Cache set: {key}")
        return r

    async def delete(self, key: str) -> bool:
        r = await self._redis.delete(key)
        if r:
            logger.debug(f"Key deleted: {key}")
            return True
        return False

    async def get_ttl(self, key: str) -> Optional[int]:
        """Get the time to live for `key`, None when the key has no expiration."""
        ttl = await self._redis.ttl(key)
        return ttl if ttl and ttl > 0 else None

    async def get_json(self, key: str) -> Optional[dict | list]:
        v = await self.get(key)
        if v:
            try:
                return orjson.loads(v)
            except orjson.JSONDecodeError:
                logger.error(f"Could not decode JSON for key {key}")
        return None

    async def set_json(self, key: str, value: dict | list, ttl: int = 300):
        try:
            v = orjson.dumps(value).decode("utf-8")
        except orjson.JSONEncodeError:
            logger.error(f"Could not encode JSON for key {key}")
            return None
        return await self.set(key, v, ttl=ttl)
