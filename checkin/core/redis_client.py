import json
from typing import Any, Dict, Optional

import redis.asyncio as aioredis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from checkin.core.config import settings
from checkin.core.logging_config import logger


class RedisClient:
    """Redis client for server side session data"""

    def __init__(self, url: Optional[str] = None, key_prefix: Optional[str] = None,
                 client: Optional[Redis] = None):
        self.url = url or settings.REDIS_URL
        self.key_prefix = key_prefix if key_prefix is not None else settings.SESSION_KEY_PREFIX
        self.client = client

    @property
    def redis(self) -> Redis:
        # Connections are opened on first command
        if self.client is None:
            self.client = aioredis.from_url(self.url, encoding="utf-8", decode_responses=True)
        return self.client

    def session_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Load session data; missing, expired or unreadable data is None"""
        try:
            raw = await self.redis.get(self.session_key(session_id))
        except RedisError as e:
            logger.error(f"Redis GET error: {e}")
            return None

        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"[Session] Discarding unreadable session data for {session_id[:8]}")
            return None
        return data if isinstance(data, dict) else None

    async def set_session(self, session_id: str, data: Dict[str, Any], expire: int) -> bool:
        try:
            return bool(await self.redis.setex(self.session_key(session_id), expire, json.dumps(data)))
        except RedisError as e:
            logger.error(f"Redis SET error: {e}")
            return False

    async def delete_session(self, session_id: str) -> bool:
        try:
            return await self.redis.delete(self.session_key(session_id)) > 0
        except RedisError as e:
            logger.error(f"Redis DELETE error: {e}")
            return False

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.error(f"Redis PING error: {e}")
            return False

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            logger.info("Redis disconnected")


redis_client = RedisClient()
