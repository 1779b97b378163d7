import logging

import redis
from redis.exceptions import RedisError

from call_inbox.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window attempt counter in Redis. Fails open when Redis is down."""

    def __init__(
        self,
        prefix: str = "login",
        limit: int | None = None,
        window_seconds: int | None = None,
        client: redis.Redis | None = None,
    ):
        self.prefix = prefix
        self.limit = limit or settings.login_rate_limit
        self.window_seconds = window_seconds or settings.login_rate_window_seconds
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)

    def hit(self, key: str) -> bool:
        redis_key = f"{self.prefix}:{key}"
        try:
            count = self.client.incr(redis_key)
            if count == 1:
                self.client.expire(redis_key, self.window_seconds)
            return count <= self.limit
        except RedisError:
            logger.warning("Rate limiter unavailable; allowing %s", redis_key)
            return True

    def reset(self, key: str) -> None:
        redis_key = f"{self.prefix}:{key}"
        try:
            self.client.delete(redis_key)
        except RedisError:
            return


_login_limiter: RateLimiter | None = None


def get_login_rate_limiter() -> RateLimiter:
    global _login_limiter
    if _login_limiter is None:
        _login_limiter = RateLimiter()
    return _login_limiter
