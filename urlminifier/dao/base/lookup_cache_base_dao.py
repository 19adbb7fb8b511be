"""Abstract base class for lookup cache data access objects (DAOs).

A lookup cache is an ephemeral, string-keyed accelerator placed in front of a
durable URL record store. Entries carry no authority: they may be evicted early,
be stale within their TTL window, or be missing altogether.
"""

from abc import ABC, abstractmethod


class LookupCacheBaseDAO(ABC):
    """Interface for lookup cache data access objects (DAOs).

    Methods:
        get(key: str, **kwargs) -> str | None:
            Return the cached value, or None on a cache miss (a normal outcome).
            Raises CacheError on connection or read failure.

        set(key: str, value: str, ttl: int, **kwargs) -> LookupCacheBaseDAO:
            Store a value for `ttl` seconds. TTL is advisory.
            Raises CacheError on connection or write failure.

        delete(*keys: str, **kwargs) -> int:
            Evict keys, returning how many existed.
            Raises CacheError on connection or write failure.

        close() -> None:
            Release the underlying client.
    """

    @abstractmethod
    def get(self, key: str, **kwargs) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl: int, **kwargs) -> 'LookupCacheBaseDAO':
        pass

    @abstractmethod
    def delete(self, *keys: str, **kwargs) -> int:
        pass

    @abstractmethod
    def close(self) -> None:
        pass
