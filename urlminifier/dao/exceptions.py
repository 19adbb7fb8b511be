"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    URLNotFoundError:
        Raised when a URLRecord is not found in the data store.

    DuplicateCodeError:
        Raised when inserting a URLRecord whose short code is already taken.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues, timeouts, OOM, etc.).

    CacheError:
        Raised when reading, writing or evicting a cache entry fails.

Example:
    >>> from urlminifier.dao.exceptions import DataStoreError
    >>> raise DataStoreError("Can't connect to Redis at localhost:6379/0.", operation='store/insert')
    Traceback (most recent call last):
        ...
    urlminifier.dao.exceptions.DataStoreError: [store/insert] Can't connect to Redis at localhost:6379/0.
"""

from urlminifier.exceptions import URLMinifierError


class DAOError(URLMinifierError):
    """Generic base class for DAO-related exceptions."""

    error_code = 'dao:dao_error'


class URLNotFoundError(DAOError):
    """Raised when a URLRecord is not found in the data store."""

    error_code = 'dao:url_not_found_error'


class DuplicateCodeError(DAOError):
    """Raised when inserting a URLRecord whose short code already exists in the data store."""

    error_code = 'dao:duplicate_code_error'


class _TaggedDAOError(DAOError):
    """DAO error tagged with the operation which failed."""

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(f'[{operation}] {message}' if operation else message)


class DataStoreError(_TaggedDAOError):
    """Raised when the data store encounters an error.

    Examples include connection issues, timeouts, and out-of-memory failures.
    """

    error_code = 'dao:data_store_error'


class CacheError(_TaggedDAOError):
    """Raised when a cache read, write or eviction fails."""

    error_code = 'dao:cache_error'
