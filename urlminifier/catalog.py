"""URL catalog: the orchestration layer of the URL minifier

The catalog ties together a short code generator, a durable URL record store
and a lookup cache. It is the only component callers interact with.

Procedures:
    create_url:
        validate URL -> resolve lifetime -> resolve short code (custom alias or
        derived code with collision retries) -> insert into store -> write-through
        to cache (best-effort)

    get_url:
        cache lookup (best-effort) -> store fallback -> expiry check (purging
        expired records best-effort) -> cache write-back on store hit

    delete_url:
        store lookup -> ownership check -> store delete -> cache eviction (best-effort)

    list_user_urls:
        store listing filtered to unexpired records

The store is the source of truth. Cache failures never reach callers; they are
logged as warnings on the catalog's logger.

Example:
    >>> from urlminifier.catalog import URLCatalog
    >>> from urlminifier.utils import load_config
    >>> with URLCatalog.from_config(load_config()) as catalog:
    ...     record = catalog.create_url('https://example.com/article/123', 'user-123')
    ...     catalog.get_url(record.short_code).long_url
    'https://example.com/article/123'
"""

import logging
import math
from datetime import datetime, timedelta, UTC

from urlminifier.models import URLRecord
from urlminifier.types import AppConfig
from urlminifier.constants import Defaults
from urlminifier.dao.base import URLRecordBaseDAO, LookupCacheBaseDAO
from urlminifier.dao.redis import URLRecordRedisDAO
from urlminifier.dao.cache import LookupCacheRedisDAO
from urlminifier.dao.exceptions import CacheError, DataStoreError, DuplicateCodeError, URLNotFoundError
from urlminifier.exceptions import (
    BadConfigurationError,
    CodeExistsError,
    DeadlineExceededError,
    ExhaustedRetriesError,
    ExpiredURLError,
    InvalidLifetimeError,
    MalformedRecordError,
    UnauthorizedError,
)
from urlminifier.utils.config import app_prefix
from urlminifier.utils.helpers import Deadline, validate_url, new_record_id
from urlminifier.utils.shortener import CodeGenerator


__all__ = ['URLCatalog', 'record_id_key', 'record_code_key']


def record_id_key(record_id: str) -> str:
    """Cache key resolving a record id to its serialized record"""
    return f'id:{record_id}'


def record_code_key(short_code: str) -> str:
    """Cache key resolving a short code to its serialized record"""
    return f'code:{short_code}'


class URLCatalog:
    """Create, resolve, delete and list short URLs

    Args:
        store (URLRecordBaseDAO):
            Durable URL record store (source of truth).
        cache (LookupCacheBaseDAO | None):
            Lookup cache placed in front of the store. None disables caching.
        generator (CodeGenerator | None):
            Short code generator. Defaults to a 7-symbol Base62 generator.
        default_lifetime (int | float | timedelta):
            Lifetime applied when `create_url` gets no explicit lifetime (seconds).
        cache_ttl (int):
            Upper bound on cache entry lifetime (seconds).
        max_attempts (int):
            Number of derived codes tried before giving up on a create.
        logger (logging.Logger | None):
            Diagnostic sink for swallowed secondary failures (cache errors,
            failed expiry purges). Defaults to this module's logger.

    Every public operation accepts `timeout` (seconds). Once it elapses, no
    further store/cache call is started and DeadlineExceededError is raised.
    A call already in flight runs to completion (bounded by the Redis socket timeout).
    """

    def __init__(
        self,
        store: URLRecordBaseDAO,
        cache: LookupCacheBaseDAO | None,
        generator: CodeGenerator | None = None,
        *,
        default_lifetime: int | float | timedelta = Defaults.LINK_LIFETIME,
        cache_ttl: int = Defaults.CACHE_TTL,
        max_attempts: int = Defaults.MAX_CODE_ATTEMPTS,
        logger: logging.Logger | None = None,
    ):
        default_lifetime = _as_timedelta(default_lifetime)
        if default_lifetime <= timedelta(0):
            raise ValueError(f'Default lifetime must be positive (given: {default_lifetime}).')
        if cache_ttl <= 0:
            raise ValueError(f'Cache TTL must be positive (given: {cache_ttl}).')
        if max_attempts < 1:
            raise ValueError(f'Max attempts must be at least 1 (given: {max_attempts}).')

        self.store = store
        self.cache = cache
        self.generator = generator or CodeGenerator()
        self.default_lifetime = default_lifetime
        self.cache_ttl = int(cache_ttl)
        self.max_attempts = int(max_attempts)
        self.logger = logger or logging.getLogger(__name__)
        self._closed = False

    @classmethod
    def from_config(cls, config: AppConfig, logger: logging.Logger | None = None) -> 'URLCatalog':
        """Build a Redis-backed catalog from a configuration document

        Args:
            config (dict):
                Document shaped like `urlminifier.utils.load_config()` output:
                "store" and "cache" sections hold Redis connection parameters,
                "catalog" holds catalog settings.
            logger (logging.Logger | None):
                Diagnostic sink passed to the catalog.

        Raises:
            BadConfigurationError:
                If a section is missing or holds invalid values.
            DataStoreError:
                If the record store is unreachable.

        Example:
            >>> catalog = URLCatalog.from_config({
            ...     'store': {'host': 'localhost', 'port': 6379, 'db': 0},
            ...     'cache': {'host': 'localhost', 'port': 6379, 'db': 1},
            ...     'catalog': {'default_lifetime': 86400, 'cache_ttl': 3600, 'max_attempts': 3},
            ... })
        """
        try:
            store_config = {f'redis_{k}': v for k, v in config['store'].items()}
            cache_config = {f'redis_{k}': v for k, v in config['cache'].items()}
            settings = dict(config.get('catalog') or {})
        except (KeyError, AttributeError, TypeError) as e:
            raise BadConfigurationError(f'Invalid catalog configuration: {e!r}') from e

        prefix = app_prefix()
        try:
            store = URLRecordRedisDAO(prefix=prefix, **store_config)
        except (TypeError, ValueError) as e:
            raise BadConfigurationError(f'Invalid store configuration: {e}') from e

        try:
            cache = LookupCacheRedisDAO(prefix=prefix, **cache_config)
        except (TypeError, ValueError) as e:
            store.close()
            raise BadConfigurationError(f'Invalid cache configuration: {e}') from e
        except Exception:
            store.close()
            raise

        try:
            return cls(
                store,
                cache,
                default_lifetime=settings.get('default_lifetime', Defaults.LINK_LIFETIME),
                cache_ttl=settings.get('cache_ttl', Defaults.CACHE_TTL),
                max_attempts=settings.get('max_attempts', Defaults.MAX_CODE_ATTEMPTS),
                logger=logger,
            )
        except (TypeError, ValueError) as e:
            store.close()
            cache.close()
            raise BadConfigurationError(f'Invalid catalog settings: {e}') from e

    def __enter__(self) -> 'URLCatalog':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------
    # Public operations
    # -------------------------------

    def create_url(
        self,
        long_url: str,
        owner_id: str,
        custom_alias: str | None = None,
        lifetime: int | float | timedelta | None = None,
        timeout: float | None = None,
    ) -> URLRecord:
        """Shorten a long URL on behalf of `owner_id`

        Args:
            long_url (str):
                Absolute http(s) URL to shorten.
            owner_id (str):
                Opaque identifier of the creating principal.
            custom_alias (str | None):
                Requested short code. When given, it is used verbatim or the
                create fails; it never falls back to a derived code. None or an
                empty string requests a derived code.
            lifetime (int | float | timedelta | None):
                Link lifetime (seconds or timedelta). Defaults to `default_lifetime`.
            timeout (float | None):
                Deadline in seconds for the whole operation.

        Returns:
            URLRecord: the persisted record.

        Raises:
            InvalidURLError, InvalidAliasError, InvalidLifetimeError:
                On invalid input (nothing is written).
            CodeExistsError:
                If the custom alias is already taken.
            ExhaustedRetriesError:
                If every derived code candidate collided.
            DataStoreError:
                If the record store fails.
            DeadlineExceededError:
                If `timeout` elapsed before the insert.
        """
        deadline = Deadline.from_timeout(timeout)
        validate_url(long_url)
        lifetime = self._resolve_lifetime(lifetime)

        created_at = datetime.now(UTC)
        expires_at = created_at + lifetime
        record_id = new_record_id()

        if custom_alias:
            record = self._insert_with_alias(record_id, long_url, owner_id, custom_alias, created_at, expires_at, deadline)
        else:
            record = self._insert_with_derived_code(record_id, long_url, owner_id, created_at, expires_at, deadline)

        self.logger.info(
            'Created short URL.',
            extra={'record_id': record.id, 'short_code': record.short_code, 'owner_id': owner_id},
        )
        self._cache_record(record, deadline)
        return record

    def get_url(self, code: str, timeout: float | None = None) -> URLRecord:
        """Resolve a short code to its unexpired URL record

        Raises:
            URLNotFoundError:
                If no record has this short code.
            ExpiredURLError:
                If the record has expired. The record is purged best-effort first.
            DataStoreError:
                If the record store fails.
            DeadlineExceededError:
                If `timeout` elapsed before the store lookup.
        """
        deadline = Deadline.from_timeout(timeout)

        record = self._cached_record(code, deadline)
        cache_hit = record is not None
        if record is None:
            record = self.store.find_by_code(code, deadline=deadline)

        if record.expired():
            self._purge_expired(record, deadline)
            raise ExpiredURLError(f"Short URL '{code}' expired at {record.expires_at.isoformat()}.")

        if not cache_hit:
            self._cache_record(record, deadline)
        return record

    def delete_url(self, record_id: str, owner_id: str, timeout: float | None = None) -> None:
        """Delete a short URL owned by `owner_id`

        Raises:
            URLNotFoundError:
                If no record has this id.
            UnauthorizedError:
                If `owner_id` is not the record's owner. The record is left untouched.
            DataStoreError:
                If the record store fails.
            DeadlineExceededError:
                If `timeout` elapsed before a store call.
        """
        deadline = Deadline.from_timeout(timeout)

        record = self.store.find_by_id(record_id, deadline=deadline)
        if record.owner_id != owner_id:
            raise UnauthorizedError(f"Owner '{owner_id}' is not allowed to delete URL '{record_id}'.")

        self.store.delete(record_id, deadline=deadline)
        self.logger.info('Deleted short URL.', extra={'record_id': record_id, 'short_code': record.short_code})
        self._evict_record(record, deadline)

    def list_user_urls(self, owner_id: str, timeout: float | None = None) -> list[URLRecord]:
        """Return the unexpired URL records created by `owner_id` (unordered)"""
        deadline = Deadline.from_timeout(timeout)
        now = datetime.now(UTC)
        return [record for record in self.store.list_by_owner(owner_id, deadline=deadline) if not record.expired(now)]

    def close(self) -> None:
        """Close the record store and the lookup cache (idempotent)"""
        if self._closed:
            return
        self._closed = True
        try:
            self.store.close()
        finally:
            if self.cache is not None:
                self.cache.close()

    # -------------------------------
    # Short code resolution
    # -------------------------------

    def _insert_with_alias(
        self,
        record_id: str,
        long_url: str,
        owner_id: str,
        custom_alias: str,
        created_at: datetime,
        expires_at: datetime,
        deadline: Deadline | None,
    ) -> URLRecord:
        alias = self.generator.validate_alias(custom_alias)
        if not self.store.code_available(alias, deadline=deadline):
            raise CodeExistsError(f"Custom alias '{alias}' is already taken.")

        record = URLRecord(
            id=record_id,
            long_url=long_url,
            short_code=alias,
            owner_id=owner_id,
            created_at=created_at,
            expires_at=expires_at,
            custom_alias=alias,
        )
        try:
            self.store.insert(record, deadline=deadline)
        except DuplicateCodeError as e:
            raise CodeExistsError(f"Custom alias '{alias}' is already taken.") from e
        return record

    def _insert_with_derived_code(
        self,
        record_id: str,
        long_url: str,
        owner_id: str,
        created_at: datetime,
        expires_at: datetime,
        deadline: Deadline | None,
    ) -> URLRecord:
        for attempt in range(self.max_attempts):
            code = self.generator.derive_code(long_url, owner_id, attempt)
            if not self.store.code_available(code, deadline=deadline):
                self.logger.debug('Derived short code is taken.', extra={'short_code': code, 'attempt': attempt})
                continue

            record = URLRecord(
                id=record_id,
                long_url=long_url,
                short_code=code,
                owner_id=owner_id,
                created_at=created_at,
                expires_at=expires_at,
            )
            try:
                self.store.insert(record, deadline=deadline)
            except DuplicateCodeError:
                self.logger.debug('Derived short code was claimed concurrently.', extra={'short_code': code, 'attempt': attempt})
                continue
            return record

        raise ExhaustedRetriesError(f'No free short code found for {long_url!r} after {self.max_attempts} attempts.')

    def _resolve_lifetime(self, lifetime: int | float | timedelta | None) -> timedelta:
        if lifetime is None:
            return self.default_lifetime
        try:
            resolved = _as_timedelta(lifetime)
        except TypeError as e:
            raise InvalidLifetimeError(f'Invalid lifetime {lifetime!r} (must be seconds or a timedelta).') from e
        if resolved <= timedelta(0):
            raise InvalidLifetimeError(f'Invalid lifetime {lifetime!r} (must be positive).')
        return resolved

    # -------------------------------
    # Best-effort secondary work
    # -------------------------------

    def _cached_record(self, code: str, deadline: Deadline | None) -> URLRecord | None:
        if self.cache is None:
            return None

        try:
            blob = self.cache.get(record_code_key(code), deadline=deadline)
        except (CacheError, DeadlineExceededError) as e:
            self.logger.warning('Failed to read URL record from cache.', extra={'short_code': code, 'error': str(e)})
            return None

        # CACHE MISS
        if blob is None:
            self.logger.debug('Cache miss.', extra={'short_code': code})
            return None

        # CACHE HIT
        try:
            record = URLRecord.from_json(blob)
        except MalformedRecordError as e:
            self.logger.warning('Discarding malformed cached URL record.', extra={'short_code': code, 'error': str(e)})
            return None
        self.logger.debug('Cache hit.', extra={'short_code': code})
        return record

    def _cache_record(self, record: URLRecord, deadline: Deadline | None) -> None:
        if self.cache is None:
            return
        if deadline is not None and deadline.expired():
            self.logger.debug('Deadline passed, skipping cache write.', extra={'record_id': record.id})
            return

        # Never keep an entry alive past the record's own expiry
        remaining = (record.expires_at - datetime.now(UTC)).total_seconds()
        ttl = max(1, min(self.cache_ttl, math.ceil(remaining)))
        blob = record.to_json()
        try:
            self.cache.set(record_id_key(record.id), blob, ttl, deadline=deadline)
            self.cache.set(record_code_key(record.short_code), blob, ttl, deadline=deadline)
        except (CacheError, DeadlineExceededError) as e:
            self.logger.warning(
                'Failed to write URL record to cache.',
                extra={'record_id': record.id, 'short_code': record.short_code, 'error': str(e)},
            )

    def _evict_record(self, record: URLRecord, deadline: Deadline | None) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(record_id_key(record.id), record_code_key(record.short_code), deadline=deadline)
        except (CacheError, DeadlineExceededError) as e:
            self.logger.warning(
                'Failed to evict URL record from cache.',
                extra={'record_id': record.id, 'short_code': record.short_code, 'error': str(e)},
            )

    def _purge_expired(self, record: URLRecord, deadline: Deadline | None) -> None:
        try:
            self.store.delete(record.id, deadline=deadline)
        except URLNotFoundError:
            self.logger.debug('Expired URL record already purged.', extra={'record_id': record.id})
        except (DataStoreError, DeadlineExceededError) as e:
            self.logger.warning(
                'Failed to purge expired URL record.',
                extra={'record_id': record.id, 'short_code': record.short_code, 'error': str(e)},
            )
        else:
            self.logger.info('Purged expired URL record.', extra={'record_id': record.id, 'short_code': record.short_code})
        self._evict_record(record, deadline)


def _as_timedelta(value: int | float | timedelta) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f'Expected seconds or a timedelta (given type: {type(value).__name__}).')
    return timedelta(seconds=value)
