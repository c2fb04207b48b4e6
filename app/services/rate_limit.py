import threading
import time
from typing import Callable, Dict, Optional, Tuple
import redis
from app.core.config import settings
from app.core.exceptions import TooManyAuthAttempts
from app.core.logging_config import logger


class RateLimiter:
    """
    Fixed-window attempt counter for the credential endpoints.

    Counts live in Redis when REDIS_URL is set, so every worker process
    shares them. Without Redis, or while it is unreachable, each process
    counts in memory instead of letting requests through unchecked.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        redis_url: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window_seconds = max(1, window_seconds)
        self.clock = clock
        self.redis_conn = None

        if redis_url:
            try:
                self.redis_conn = redis.from_url(redis_url)
                logger.info("RateLimiter using Redis")
            except (redis.RedisError, ValueError) as e:
                logger.error(f"Failed to configure Redis for rate limiting: {e}")

        # key -> (window index, attempts in that window)
        self._local: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()

    def _window(self) -> int:
        return int(self.clock() // self.window_seconds)

    def hit(self, key: str) -> bool:
        """
        Count one attempt for key.

        Returns:
            True if the attempt is within the limit for the current window
        """
        if self.limit <= 0:
            return True

        if self.redis_conn is not None:
            try:
                return self._hit_redis(key)
            except redis.RedisError as e:
                logger.warning(f"Rate limit store unavailable, counting in process: {e}")

        return self._hit_local(key)

    def _hit_redis(self, key: str) -> bool:
        redis_key = f"ratelimit:{key}:{self._window()}"
        pipe = self.redis_conn.pipeline()
        pipe.incr(redis_key)
        pipe.expire(redis_key, self.window_seconds)
        count, _ = pipe.execute()
        return int(count) <= self.limit

    def _hit_local(self, key: str) -> bool:
        window = self._window()
        with self._lock:
            # Drop counters of past windows
            stale = [k for k, (w, _) in self._local.items() if w != window]
            for k in stale:
                del self._local[k]

            _, count = self._local.get(key, (window, 0))
            count += 1
            self._local[key] = (window, count)
        return count <= self.limit

    def check_auth_attempt(self, action: str, client_ip: str, email: str) -> None:
        """
        Count an attempt at action by client_ip for email.

        Raises:
            TooManyAuthAttempts: If either the client or the email is over
                the limit for the current window
        """
        ip_allowed = self.hit(f"{action}:ip:{client_ip}")
        email_allowed = self.hit(f"{action}:email:{email.lower()}")
        if not (ip_allowed and email_allowed):
            logger.warning(f"Rate limited {action}: ip={client_ip}")
            raise TooManyAuthAttempts(retry_after=self.window_seconds)


# Create a singleton instance
auth_rate_limiter = RateLimiter(
    limit=settings.AUTH_RATE_LIMIT,
    window_seconds=settings.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    redis_url=settings.REDIS_URL,
)
