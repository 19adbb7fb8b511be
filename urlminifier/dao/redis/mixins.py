"""Redis mixin providing shared client initialization and connectivity checks.

Responsibilities:
    - Initialize Redis client
    - Healthcheck Redis client
    - Close Redis client

Classes:
    - RedisClientMixin: Base mixin to inject Redis key management, client setup & healthcheck.

Example:
    Typical usage with a DAO implementation:

        >>> class URLRecordRedisDAO(RedisClientMixin, URLRecordBaseDAO):
        ...     pass
        ...
        >>> dao = URLRecordRedisDAO(prefix="myapp:prod")
        >>> dao._healthcheck()
        True
"""

import redis

from urlminifier.dao.redis.redis_key_schema import RedisKeySchema
from urlminifier.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Mixin Redis client setup and health check for Redis-backed DAOs.

    Attributes:
        redis (redis.Redis):
            Active Redis client instance used by subclasses.

        keys (RedisKeySchema):
            Helper class for generating namespaced Redis key names.

    Methods:
        _healthcheck(raise_error: bool = True) -> bool:
            Ping Redis to verify connectivity.
            Optionally raise a DataStoreError if unreachable.

        close() -> None:
            Close the Redis client (idempotent).
    """

    def __init__(
        self,
        redis_host: str | None = 'localhost',
        redis_port: int | None = 6379,
        redis_db: int | None = 0,
        redis_decode_responses: bool | None = True,
        redis_username: str | None = None,
        redis_password: str | None = None,
        redis_socket_timeout: float | None = None,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
        healthcheck: bool = True,
    ):
        """Initialize a Redis-based DAO

        The option is given to either use an existing Redis client instance or
        create one via the appropriate Redis connection parameters.

        Args:
            redis_host (str | None):
                Hostname of the Redis server. Defaults to 'localhost'.

            redis_port (int | None):
                Redis server port. Defaults to 6379.

            redis_db (int | None):
                Redis database index. Defaults to 0.

            redis_decode_responses (bool | None):
                If True, decodes Redis responses. Defaults to True.

            redis_username (str | None):
                Username for Redis authentication (if required).

            redis_password (str | None):
                Password for Redis authentication (if required).

            redis_socket_timeout (float | None):
                Upper bound in seconds for a single Redis command. Defaults to no timeout.

            redis_client (redis.Redis | None):
                Pre-initialized Redis client. If None, a new client is created.

            prefix (str | None):
                Namespace prefix for all Redis keys, e.g. 'app:env'.

            healthcheck (bool):
                If True, PING Redis and raise DataStoreError when unreachable.

        Raises:
            DataStoreError:
                If Redis healthcheck fails (connectivity issues).
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
                socket_timeout=redis_socket_timeout,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)
        self._closed = False

        if healthcheck:
            self._healthcheck()

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis to healthcheck connectivity

        Args:
            raise_error (bool):
                If True, raises DataStoreError on failure. Defaults to True.

        Returns:
            bool:
                True if Redis is reachable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreError:
                If Redis connection cannot be established and raise_error=True.
        """
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            if raise_error:
                info = self.redis.connection_pool.connection_kwargs
                redis_host = info.get('host')
                redis_port = info.get('port')
                redis_db = info.get('db')
                raise DataStoreError(
                    f"Can't connect to Redis at {redis_host}:{redis_port}/{redis_db}. Check the provided configuration parameters."
                ) from e
            return False
        else:
            return True

    def close(self) -> None:
        """Close the Redis client and release its connection pool (idempotent)"""
        if self._closed:
            return
        self._closed = True
        self.redis.close()
