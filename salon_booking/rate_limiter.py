"""
Hybrid in-memory + Redis rate limiting for the public booking endpoints.
Counters live in process memory and are mirrored to Redis periodically so
a restarted process resumes the current window.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import Request

from .config import VERIFY_REQUEST_RATE_LIMIT, VERIFY_REQUEST_RATE_WINDOW_SECONDS
from .errors import RateLimited

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10
MEMORY_CACHE_CLEANUP_INTERVAL = 60
REDIS_RETRY_INTERVAL = 60
last_cleanup_time = 0
redis_retry_at = 0.0


def get_redis_client() -> redis.Redis:
    """Get or create the Redis client from REDIS_URL or the individual REDIS_* settings"""
    global redis_client, redis_retry_at

    if redis_client is None:
        if time.time() < redis_retry_at:
            raise redis.ConnectionError("Redis marked unavailable, retrying later")

        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD", None),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        try:
            client.ping()
        except redis.RedisError:
            redis_retry_at = time.time() + REDIS_RETRY_INTERVAL
            raise
        logger.info("Redis connected for rate limiting")
        redis_client = client

    return redis_client


def client_ip_from_request(request: Request) -> str:
    """Origin address, honoring the first X-Forwarded-For hop set by the proxy"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis]
) -> tuple[bool, int, int]:
    """
    Count one request against ``key``.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        if key not in memory_cache:
            entry = {
                "count": 0,
                "reset_time": current_time + window_seconds,
                "last_redis_sync": current_time,
            }
            if client is not None:
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry["count"] = int(redis_count)
                        entry["reset_time"] = current_time + redis_ttl
                except redis.RedisError as e:
                    logger.warning(f"Failed to load {key} from Redis, using memory only: {e}")
            memory_cache[key] = entry

        cache_entry = memory_cache[key]

        if current_time >= cache_entry["reset_time"]:
            cache_entry["count"] = 0
            cache_entry["reset_time"] = current_time + window_seconds
            cache_entry["last_redis_sync"] = 0

        is_allowed = cache_entry["count"] < limit
        if is_allowed:
            cache_entry["count"] += 1

        time_since_sync = current_time - cache_entry["last_redis_sync"]
        if client is not None and time_since_sync >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                remaining = max(1, cache_entry["reset_time"] - current_time)
                client.set(key, cache_entry["count"], ex=remaining)
                cache_entry["last_redis_sync"] = current_time
            except redis.RedisError as e:
                logger.warning(f"Failed to sync {key} to Redis: {e}")

        ttl = cache_entry["reset_time"] - current_time
        return is_allowed, cache_entry["count"], max(0, ttl)


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency.

    When Redis is unreachable the limiter keeps counting in process memory only.
    """

    async def rate_limiter(request: Request):
        try:
            client = get_redis_client()
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Redis unavailable, rate limiting from memory only: {e}")
            client = None

        key = f"{key_prefix}:{client_ip_from_request(request)}"
        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)
        if not is_allowed:
            logger.warning(f"Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise RateLimited(retry_after=ttl)

    return rate_limiter


verify_request_rate_limit = create_rate_limiter(
    limit=VERIFY_REQUEST_RATE_LIMIT,
    window_seconds=VERIFY_REQUEST_RATE_WINDOW_SECONDS,
    key_prefix="verify_request",
)
