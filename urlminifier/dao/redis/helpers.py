import functools
import redis
from typing import Any
from collections.abc import Callable

from urlminifier.dao.exceptions import DataStoreError


__all__ = ['handle_redis_connection_error']


def _describe_client(client: redis.Redis) -> str:
    info = client.connection_pool.connection_kwargs
    return f"{info.get('host')}:{info.get('port')}/{info.get('db')}"


def handle_redis_connection_error[F: Callable[..., Any]](
    operation: str,
    error: type[DataStoreError] | Callable[..., Exception] = DataStoreError,
) -> Callable[[F], F]:
    """Wrap Redis-interacting DAO methods to handle deadlines and Redis failures

    Before the wrapped method runs, the caller's `deadline` keyword argument (if any)
    is checked and DeadlineExceededError is raised once it has passed. Connection
    errors, timeouts and other Redis errors are re-raised as `error`, tagged with
    `operation`.

    Args:
        operation (str):
            Operation tag attached to raised errors (e.g. 'store/insert').

        error (type[DataStoreError]):
            Exception class raised on Redis failures. Defaults to DataStoreError.

    Returns:
        Callable[[F], F]:
            Decorator for DAO methods performing Redis operations.

    Example:
        >>> @handle_redis_connection_error('store/count')
        ... def code_available(self, short_code, **kwargs):
        ...     return not self.redis.exists(self.keys.code_key(short_code))
    """

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            deadline = kwargs.get('deadline')
            if deadline is not None:
                deadline.check(operation)

            try:
                return method(self, *args, **kwargs)
            except redis.exceptions.ConnectionError as e:
                raise error(f"Can't connect to Redis at {_describe_client(self.redis)}.", operation=operation) from e
            except redis.exceptions.TimeoutError as e:
                raise error(f'Redis at {_describe_client(self.redis)} timed out.', operation=operation) from e
            except redis.exceptions.RedisError as e:
                raise error(f'Redis error: {e}', operation=operation) from e

        return wrapper

    return decorator
