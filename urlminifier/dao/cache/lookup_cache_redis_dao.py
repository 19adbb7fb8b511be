"""DAO for caching URL record lookups in Redis

This module provides a Redis-backed lookup cache placed in front of the durable
URL record store. The cache holds serialized URL records keyed by logical keys
chosen by the caller (e.g. "id:<id>" and "code:<short_code>").

Responsibilities:
    - Read, write and evict cache entries
    - Namespace all entries via CacheKeySchema ("cache:<prefix>:<key>")
    - Tolerate an unreachable Redis at construction (the system must keep
      working without a cache)

Classes:
    LookupCacheRedisDAO:
        Concrete lookup cache DAO backed by Redis.

Example:
    >>> cache = LookupCacheRedisDAO(prefix="urlminifier:dev", redis_db=1)
    >>> cache.set("code:4kQ9zXa", record.to_json(), ttl=86_400)
    <LookupCacheRedisDAO>
    >>> cache.get("code:4kQ9zXa")
    '{"id":"url_...","long_url":"https://example.com/article/123",...}'
    >>> cache.delete("id:url_...", "code:4kQ9zXa")
    2
    >>> cache.get("code:4kQ9zXa") is None
    True
"""

import logging

from beartype import beartype

from urlminifier.constants import Operation
from urlminifier.dao.base import LookupCacheBaseDAO
from urlminifier.dao.cache.cache_key_schema import CacheKeySchema
from urlminifier.dao.exceptions import CacheError
from urlminifier.dao.redis.helpers import handle_redis_connection_error
from urlminifier.dao.redis.mixins import RedisClientMixin


logger = logging.getLogger(__name__)


class LookupCacheRedisDAO(RedisClientMixin, LookupCacheBaseDAO):
    """Redis-backed lookup cache DAO

    Accepts the same connection arguments as RedisClientMixin. Unlike the
    record store, a failed healthcheck at construction is logged and the
    DAO is still returned; subsequent calls raise CacheError until Redis
    becomes reachable.

    Attributes (via mixins):
        redis (redis.Redis):
            Redis client used to communicate with the Redis cache.
        keys (CacheKeySchema):
            Key schema helper for generating namespaced cache keys.

    Methods:
        get(key: str, **kwargs) -> str | None:
            Return the cached value, or None on a cache miss.

        set(key: str, value: str, ttl: int, **kwargs) -> LookupCacheRedisDAO:
            Store a value for `ttl` seconds.

        delete(*keys: str, **kwargs) -> int:
            Evict keys, returning how many existed.

    All methods raise CacheError on Redis failures and DeadlineExceededError
    when called with an expired `deadline` keyword.
    """

    def __init__(self, *args, **kwargs):
        kwargs['healthcheck'] = False
        super().__init__(*args, **kwargs)
        self.keys = CacheKeySchema(prefix=self.keys.prefix)

        if not self._healthcheck(raise_error=False):
            info = self.redis.connection_pool.connection_kwargs
            logger.warning(
                'Lookup cache is unreachable. Continuing without a cache.',
                extra={'redis_host': info.get('host'), 'redis_port': info.get('port'), 'redis_db': info.get('db')},
            )

    @handle_redis_connection_error(Operation.CACHE_GET, error=CacheError)
    @beartype
    def get(self, key: str, **kwargs) -> str | None:
        value = self.redis.get(self.keys.entry_key(key))
        # CACHE MISS
        if value is None:
            return None
        # CACHE HIT
        return value.decode('utf-8') if isinstance(value, bytes) else value

    @handle_redis_connection_error(Operation.CACHE_SET, error=CacheError)
    @beartype
    def set(self, key: str, value: str, ttl: int, **kwargs) -> 'LookupCacheRedisDAO':
        """Store a cache entry

        Args:
            key (str):
                Logical cache key (namespaced internally).
            value (str):
                Value to cache.
            ttl (int):
                Time-to-live in seconds. Must be positive.

        Returns:
            LookupCacheRedisDAO: self (for method chaining)

        Raises:
            ValueError:
                If `ttl` is not positive.
            CacheError:
                If the entry can't be written.
        """
        if ttl <= 0:
            raise ValueError(f'Cache TTL must be positive (given: {ttl}).')
        self.redis.set(self.keys.entry_key(key), value, ex=ttl)
        return self

    @handle_redis_connection_error(Operation.CACHE_DELETE, error=CacheError)
    @beartype
    def delete(self, *keys: str, **kwargs) -> int:
        if not keys:
            return 0
        return self.redis.delete(*(self.keys.entry_key(key) for key in keys))

    @handle_redis_connection_error(Operation.CACHE_CLOSE, error=CacheError)
    def close(self) -> None:
        super().close()
