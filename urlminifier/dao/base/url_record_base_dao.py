"""Abstract base class for URL record data access objects (DAOs).

This class establishes a consistent contract for all durable URL record stores,
regardless of the underlying storage mechanism (e.g., Redis, MongoDB, PostgreSQL).

Responsibilities:
    - Provide an interface for inserting, retrieving, listing and deleting URLRecord objects.
    - Enforce uniqueness of short codes (the authoritative guard against concurrent creates).
    - Maintain a secondary lookup path by owner.
    - Standardize error handling across data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from urlminifier.dao.redis import URLRecordRedisDAO
        >>> dao = URLRecordRedisDAO(...)

        >>> dao.insert(record)
        >>> dao.find_by_code('4kQ9zXa').long_url
        'https://example.com/blog/article-123'
        >>> dao.code_available('4kQ9zXa')
        False
        >>> dao.delete(record.id)
        1
"""

from abc import ABC, abstractmethod

from urlminifier.models import URLRecord


class URLRecordBaseDAO(ABC):
    """Interface for URL record data access objects (DAOs).

    Every method accepts `**kwargs` used by the data store. Callers pass their
    `deadline` (urlminifier.utils.Deadline | None) this way; implementations must
    not start a store call once it has expired.

    Methods:
        insert(record: URLRecord, **kwargs) -> URLRecordBaseDAO:
            Raises DuplicateCodeError if the short code already exists.
            Raises DataStoreError on connection or write failure.

        find_by_code(short_code: str, **kwargs) -> URLRecord:
            Raises URLNotFoundError if no record has this short code.

        find_by_id(record_id: str, **kwargs) -> URLRecord:
            Raises URLNotFoundError if no record has this id.

        delete(record_id: str, **kwargs) -> int:
            Returns the number of records removed (1).
            Raises URLNotFoundError if nothing was removed.

        code_available(short_code: str, **kwargs) -> bool:
            Existence check; racy against concurrent inserts.

        list_by_owner(owner_id: str, **kwargs) -> list[URLRecord]:
            Unordered, unpaginated.

        close() -> None:
            Release the underlying client.

    NOTE:
        - Stores do not interpret `expires_at`. Logical expiry is enforced by the catalog.
    """

    @abstractmethod
    def insert(self, record: URLRecord, **kwargs) -> 'URLRecordBaseDAO':
        """Insert a new URLRecord into the data store.

        Raises:
            DuplicateCodeError:
                If a record with the same short code already exists.
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def find_by_code(self, short_code: str, **kwargs) -> URLRecord:
        pass

    @abstractmethod
    def find_by_id(self, record_id: str, **kwargs) -> URLRecord:
        pass

    @abstractmethod
    def delete(self, record_id: str, **kwargs) -> int:
        """Delete exactly one URLRecord by id.

        Returns:
            int: number of records removed.

        Raises:
            URLNotFoundError:
                If no record with this id exists (already gone).
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def code_available(self, short_code: str, **kwargs) -> bool:
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: str, **kwargs) -> list[URLRecord]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass
