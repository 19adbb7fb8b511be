"""Data Access Object (DAO) implementation for managing URL records in Redis

This module provides a Redis-based implementation of URLRecordBaseDAO for CRUD-like
operations with URLRecord instances.

Responsibilities:
    - Insert and retrieve URL records from Redis;
    - Guard short code uniqueness with an optimistic (WATCH/MULTI/EXEC) transaction;
    - Maintain the per-owner secondary index;
    - Provide defensive error handling and raise appropriate DAO exceptions.

Key layout (see RedisKeySchema):
    <prefix>:records:<id>               -> serialized URLRecord (JSON)
    <prefix>:codes:<short_code>         -> record id
    <prefix>:owners:<owner_id>:records  -> set of record ids

Classes:
    URLRecordRedisDAO:
        DAO for storing and retrieving URLRecord in a Redis datastore.

Example:
    >>> from urlminifier.models import URLRecord
    >>> from urlminifier.dao.redis import URLRecordRedisDAO

    >>> dao = URLRecordRedisDAO(prefix="urlminifier:dev")
    >>> dao.insert(record)
    <URLRecordRedisDAO>

    >>> dao.find_by_code("4kQ9zXa").long_url
    'https://example.com/article/123'
    >>> dao.delete(record.id)
    1
"""

from datetime import timedelta

import redis
from beartype import beartype

from urlminifier.models import URLRecord
from urlminifier.constants import Defaults, Operation
from urlminifier.exceptions import MalformedRecordError
from urlminifier.dao.base import URLRecordBaseDAO
from urlminifier.dao.redis.mixins import RedisClientMixin
from urlminifier.dao.redis.helpers import handle_redis_connection_error
from urlminifier.dao.exceptions import DataStoreError, DuplicateCodeError, URLNotFoundError


class URLRecordRedisDAO(RedisClientMixin, URLRecordBaseDAO):
    """Redis-based Data Access Object (DAO) for managing URL records

    This class implements the URLRecordBaseDAO interface using Redis as a data store.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        insert(record: URLRecord, **kwargs) -> URLRecordRedisDAO:
            Insert a URL record and index it by short code and owner.
            Raises DuplicateCodeError when the short code is already claimed.

        find_by_code(short_code: str, **kwargs) -> URLRecord:
            Resolve a short code to its record.
            Raises URLNotFoundError when the short code doesn't exist.

        find_by_id(record_id: str, **kwargs) -> URLRecord:
            Retrieve a record by its id.
            Raises URLNotFoundError when the id doesn't exist.

        delete(record_id: str, **kwargs) -> int:
            Remove a record and its index entries. Returns 1.
            Raises URLNotFoundError when nothing was removed.

        code_available(short_code: str, **kwargs) -> bool:
            Check whether a short code is free.

        list_by_owner(owner_id: str, **kwargs) -> list[URLRecord]:
            Retrieve all records created by an owner (unordered).

    All methods raise DataStoreError on connectivity issues with Redis and
    DeadlineExceededError when called with an expired `deadline` keyword.

    NOTE: Physical keys expire RETENTION_GRACE seconds after the record's
          logical expiry. The store itself never interprets `expires_at`.
    """

    @handle_redis_connection_error(Operation.STORE_INSERT)
    @beartype
    def insert(self, record: URLRecord, **kwargs) -> 'URLRecordRedisDAO':
        """Insert a URL record into Redis

        Args:
            record (URLRecord):
                URL record to persist.
            **kwargs:
                Optional keyword arguments (e.g. `deadline`).

        Returns:
            URLRecordRedisDAO: self (for method chaining)

        Raises:
            DuplicateCodeError:
                If a record with the same short code already exists, or a concurrent
                insert claimed the short code first.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        code_key = self.keys.code_key(record.short_code)
        record_key = self.keys.record_key(record.id)
        owner_key = self.keys.owner_records_key(record.owner_id)
        expire_at = int((record.expires_at + timedelta(seconds=Defaults.RETENTION_GRACE)).timestamp())

        # NOTE: The code key is WATCHed so that two concurrent inserts of the same
        #       short code can't both pass the existence check:
        #
        #       (caller 1): WATCH codes:<code>, EXISTS codes:<code> => 0
        #       (caller 2): WATCH codes:<code>, EXISTS codes:<code> => 0
        #       (caller 2): MULTI, SET codes:<code> ..., EXEC     => OK
        #       (caller 1): MULTI, SET codes:<code> ..., EXEC     => WatchError
        #
        #       Only one record ever owns the short code.
        with self.redis.pipeline(transaction=True) as pipe:
            try:
                pipe.watch(code_key)
                if pipe.exists(code_key):
                    raise DuplicateCodeError(f"Short code '{record.short_code}' already exists.")

                pipe.multi()
                pipe.set(code_key, record.id, exat=expire_at)
                pipe.set(record_key, record.to_json(), exat=expire_at)
                pipe.sadd(owner_key, record.id)
                # Owner index lives as long as its longest-lived record
                pipe.expireat(owner_key, expire_at, nx=True)
                pipe.expireat(owner_key, expire_at, gt=True)
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise DuplicateCodeError(f"Short code '{record.short_code}' was claimed concurrently.") from e
        return self

    @handle_redis_connection_error(Operation.STORE_FIND)
    @beartype
    def find_by_code(self, short_code: str, **kwargs) -> URLRecord:
        """Resolve a short code to its URL record

        Raises:
            URLNotFoundError:
                If the short code doesn't exist (or its record is physically gone).
            DataStoreError:
                If Redis connectivity issues occur or the stored payload is malformed.
        """
        record_id = self.redis.get(self.keys.code_key(short_code))
        if record_id is None:
            raise URLNotFoundError(f"URL with short code '{short_code}' not found.")

        blob = self.redis.get(self.keys.record_key(record_id))
        if blob is None:
            raise URLNotFoundError(f"URL with short code '{short_code}' not found.")
        return _load_record(blob, Operation.STORE_FIND)

    @handle_redis_connection_error(Operation.STORE_FIND)
    @beartype
    def find_by_id(self, record_id: str, **kwargs) -> URLRecord:
        blob = self.redis.get(self.keys.record_key(record_id))
        if blob is None:
            raise URLNotFoundError(f"URL with id '{record_id}' not found.")
        return _load_record(blob, Operation.STORE_FIND)

    @handle_redis_connection_error(Operation.STORE_DELETE)
    @beartype
    def delete(self, record_id: str, **kwargs) -> int:
        """Delete a URL record along with its short code and owner index entries

        Returns:
            int: number of records removed (1).

        Raises:
            URLNotFoundError:
                If no record with this id exists (e.g. a concurrent delete won).
            DataStoreError:
                If Redis connectivity issues occur.
        """
        record_key = self.keys.record_key(record_id)
        blob = self.redis.get(record_key)
        if blob is None:
            raise URLNotFoundError(f"URL with id '{record_id}' not found.")
        record = _load_record(blob, Operation.STORE_DELETE)

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(record_key)
            pipe.delete(self.keys.code_key(record.short_code))
            pipe.srem(self.keys.owner_records_key(record.owner_id), record_id)
            removed, _, _ = pipe.execute()

        if not removed:
            raise URLNotFoundError(f"URL with id '{record_id}' not found.")
        return 1

    @handle_redis_connection_error(Operation.STORE_COUNT)
    @beartype
    def code_available(self, short_code: str, **kwargs) -> bool:
        return not self.redis.exists(self.keys.code_key(short_code))

    @handle_redis_connection_error(Operation.STORE_LIST)
    @beartype
    def list_by_owner(self, owner_id: str, **kwargs) -> list[URLRecord]:
        """Retrieve all URL records created by an owner

        Index entries whose record has physically expired are skipped and
        removed from the owner index.
        Records are returned in no particular order.
        """
        owner_key = self.keys.owner_records_key(owner_id)
        record_ids = sorted(self.redis.smembers(owner_key))
        if not record_ids:
            return []

        blobs = self.redis.mget([self.keys.record_key(record_id) for record_id in record_ids])
        stale_ids = [record_id for record_id, blob in zip(record_ids, blobs) if blob is None]
        if stale_ids:
            self.redis.srem(owner_key, *stale_ids)
        return [_load_record(blob, Operation.STORE_LIST) for blob in blobs if blob is not None]

    @handle_redis_connection_error(Operation.STORE_CLOSE)
    def close(self) -> None:
        super().close()


def _load_record(blob: str | bytes, operation: Operation) -> URLRecord:
    try:
        return URLRecord.from_json(blob)
    except MalformedRecordError as e:
        raise DataStoreError(str(e), operation=operation) from e
