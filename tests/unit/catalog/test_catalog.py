"""Unit tests for the URLCatalog operations

The catalog runs against in-memory store and cache doubles (see conftest.py).

Test coverage includes:

1. create_url()
   - Derives a 7 symbol code from (URL, owner), persists it and writes it through to the cache.
   - Honors explicit lifetimes; rejects non-positive ones.
   - Rejects invalid URLs and aliases without touching the store.
   - A missing or empty alias means a derived code.
   - Uses custom aliases verbatim; taken aliases raise CodeExistsError without store mutation.
   - Retries derived codes on collisions; exhaustion raises ExhaustedRetriesError.
   - Cache failures are logged, never raised.

2. get_url()
   - Resolves from the store on a cache miss and writes the record back to the cache.
   - Serves subsequent lookups from the cache.
   - Expired records raise ExpiredURLError after a best-effort purge.
   - Cache failures and malformed cache entries fall back to the store.

3. delete_url()
   - Owners can delete; non-owners get UnauthorizedError and the record survives.
   - Cache entries are evicted; eviction failures are logged.

4. list_user_urls()
   - Returns only the owner's unexpired records.

5. End-to-end
   - create -> get -> delete -> get raises URLNotFoundError.
"""

import logging
from datetime import datetime, timedelta, UTC

import pytest
from freezegun import freeze_time

from urlminifier.catalog import record_code_key, record_id_key
from urlminifier.dao.exceptions import CacheError, DataStoreError, URLNotFoundError
from urlminifier.exceptions import (
    CodeExistsError,
    ExhaustedRetriesError,
    ExpiredURLError,
    InvalidAliasError,
    InvalidLifetimeError,
    InvalidURLError,
    UnauthorizedError,
)
from urlminifier.models import URLRecord
from urlminifier.utils import CodeGenerator


LONG_URL = 'https://example.com/blog/article-123'
OWNER = 'user-123'


def derived(attempt: int = 0, long_url: str = LONG_URL, owner_id: str = OWNER) -> str:
    return CodeGenerator().derive_code(long_url, owner_id, attempt)


def occupy(store, short_code: str, owner_id: str = 'someone-else') -> URLRecord:
    """Insert a record owning `short_code` directly into the store double."""
    now = datetime.now(UTC)
    record = URLRecord(
        id=f'url_occupied_{short_code}',
        long_url='https://example.org/other',
        short_code=short_code,
        owner_id=owner_id,
        created_at=now,
        expires_at=now + timedelta(days=1),
    )
    store.records[record.id] = record
    store.codes[short_code] = record.id
    return record


# -------------------------------
# 1. create_url()
# -------------------------------


@freeze_time('2025-10-19 12:00:00')
def test_create_url_with_derived_code(catalog, store, cache):
    """Ensure a derived code is persisted and written through to the cache."""
    record = catalog.create_url(LONG_URL, OWNER)

    assert record.short_code == derived()
    assert len(record.short_code) == 7
    assert record.long_url == LONG_URL
    assert record.owner_id == OWNER
    assert record.custom_alias is None
    assert record.id.startswith('url_')
    assert record.created_at == datetime(2025, 10, 19, 12, 0, 0, tzinfo=UTC)
    assert record.expires_at - record.created_at == timedelta(hours=24)

    assert store.records[record.id] == record
    assert cache.entries[record_id_key(record.id)] == record.to_json()
    assert cache.entries[record_code_key(record.short_code)] == record.to_json()
    assert cache.ttls[record_code_key(record.short_code)] == 3_600


@pytest.mark.parametrize('lifetime', [timedelta(minutes=5), 300, 300.0])
def test_create_url_with_explicit_lifetime(catalog, lifetime):
    """Ensure an explicit lifetime overrides the default one."""
    record = catalog.create_url(LONG_URL, OWNER, lifetime=lifetime)
    assert record.expires_at - record.created_at == timedelta(minutes=5)


def test_cache_entries_never_outlive_the_record(catalog, cache):
    """Ensure cache TTLs are capped by the record's remaining lifetime."""
    record = catalog.create_url(LONG_URL, OWNER, lifetime=60)
    assert cache.ttls[record_id_key(record.id)] <= 60


@pytest.mark.parametrize('lifetime', [0, -1, timedelta(0), timedelta(seconds=-30), '1h', True])
def test_create_url_with_invalid_lifetime(catalog, store, lifetime):
    """Ensure non-positive or non-numeric lifetimes raise InvalidLifetimeError."""
    with pytest.raises(InvalidLifetimeError):
        catalog.create_url(LONG_URL, OWNER, lifetime=lifetime)

    assert store.calls == []


@pytest.mark.parametrize('long_url', ['', 'not-a-url', 'ftp://example.com/file', 'https://', '/relative'])
def test_create_url_with_invalid_url(catalog, store, cache, long_url):
    """Ensure invalid URLs raise InvalidURLError before any I/O."""
    with pytest.raises(InvalidURLError):
        catalog.create_url(long_url, OWNER)

    assert store.calls == []
    assert cache.calls == []


@pytest.mark.parametrize('alias', ['my-custom-url', 'custom-url-123'])
def test_create_url_with_custom_alias(catalog, store, alias):
    """Ensure a well-formed, free alias is used verbatim."""
    record = catalog.create_url(LONG_URL, OWNER, custom_alias=alias)

    assert record.short_code == alias
    assert record.custom_alias == alias
    assert store.codes[alias] == record.id


@pytest.mark.parametrize('alias', [None, ''])
def test_create_url_without_alias_derives_code(catalog, store, alias):
    """Ensure a missing or empty alias falls back to a derived code."""
    record = catalog.create_url(LONG_URL, OWNER, custom_alias=alias)

    assert record.short_code == derived()
    assert len(record.short_code) == 7
    assert record.custom_alias is None
    assert store.codes[record.short_code] == record.id


@pytest.mark.parametrize('alias', ['ab', 'x' * 33, '@#%', 'has space'])
def test_create_url_with_invalid_alias(catalog, store, alias):
    """Ensure malformed aliases raise InvalidAliasError before any I/O."""
    with pytest.raises(InvalidAliasError):
        catalog.create_url(LONG_URL, OWNER, custom_alias=alias)

    assert store.calls == []


def test_create_url_with_taken_alias(catalog, store, cache):
    """Ensure a taken alias raises CodeExistsError and leaves the store untouched."""
    existing = occupy(store, 'my-custom-url')

    with pytest.raises(CodeExistsError):
        catalog.create_url(LONG_URL, OWNER, custom_alias='my-custom-url')

    assert store.records == {existing.id: existing}
    assert 'insert' not in store.calls
    assert cache.entries == {}


def test_create_url_with_alias_claimed_concurrently(catalog, store):
    """Ensure losing the insert race for an alias raises CodeExistsError (no fallback)."""
    store.race_codes.add('my-custom-url')

    with pytest.raises(CodeExistsError):
        catalog.create_url(LONG_URL, OWNER, custom_alias='my-custom-url')

    assert store.records == {}
    assert store.calls.count('insert') == 1


def test_create_url_retries_on_taken_code(catalog, store):
    """Ensure a taken derived code moves on to the next attempt."""
    occupy(store, derived(0))

    record = catalog.create_url(LONG_URL, OWNER)

    assert record.short_code == derived(1)


def test_create_url_retries_on_lost_insert_race(catalog, store, caplog):
    """Ensure a derived code claimed between the availability check and the insert moves on to the next attempt."""
    store.race_codes.add(derived(0))

    with caplog.at_level(logging.DEBUG, logger='tests.catalog'):
        record = catalog.create_url(LONG_URL, OWNER)

    assert record.short_code == derived(1)
    assert any(r.getMessage() == 'Derived short code was claimed concurrently.' and r.attempt == 0 for r in caplog.records)


def test_create_url_same_url_twice_gets_distinct_codes(catalog):
    """Ensure shortening the same URL twice yields two distinct records."""
    first = catalog.create_url(LONG_URL, OWNER)
    second = catalog.create_url(LONG_URL, OWNER)

    assert first.short_code != second.short_code
    assert first.id != second.id


def test_create_url_exhausts_retries(catalog, store):
    """Ensure ExhaustedRetriesError is raised once every attempt collided."""
    for attempt in range(3):
        occupy(store, derived(attempt))

    with pytest.raises(ExhaustedRetriesError):
        catalog.create_url(LONG_URL, OWNER)

    assert store.calls.count('code_available') == 3
    assert 'insert' not in store.calls


def test_create_url_with_store_failure(catalog, store, cache):
    """Ensure store failures propagate as DataStoreError and nothing is cached."""
    store.errors['insert'] = DataStoreError("Can't connect to Redis at redis:6379/0.", operation='store/insert')

    with pytest.raises(DataStoreError) as exc_info:
        catalog.create_url(LONG_URL, OWNER)

    assert exc_info.value.operation == 'store/insert'
    assert cache.entries == {}


def test_create_url_with_cache_failure(catalog, store, cache, caplog):
    """Ensure cache failures on write-through are logged, not raised."""
    cache.errors['set'] = CacheError('Redis error: OOM', operation='cache/set')

    record = catalog.create_url(LONG_URL, OWNER)

    assert store.records[record.id] == record
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert [r.getMessage() for r in warnings] == ['Failed to write URL record to cache.']
    assert warnings[0].short_code == record.short_code


def test_create_url_logs_creation(catalog, caplog):
    """Ensure successful creates are logged at INFO."""
    with caplog.at_level(logging.INFO, logger='tests.catalog'):
        record = catalog.create_url(LONG_URL, OWNER)

    created = [r for r in caplog.records if r.getMessage() == 'Created short URL.']
    assert len(created) == 1
    assert created[0].record_id == record.id


# -------------------------------
# 2. get_url()
# -------------------------------


def test_get_url_falls_back_to_store_and_writes_back(catalog, store, cache):
    """Ensure a cache miss resolves from the store and repopulates the cache."""
    record = catalog.create_url(LONG_URL, OWNER)
    cache.entries.clear()

    result = catalog.get_url(record.short_code)

    assert result == record
    assert store.calls.count('find_by_code') == 1
    assert cache.entries[record_code_key(record.short_code)] == record.to_json()
    assert cache.entries[record_id_key(record.id)] == record.to_json()


def test_get_url_served_from_cache(catalog, store):
    """Ensure a cache hit doesn't reach the store."""
    record = catalog.create_url(LONG_URL, OWNER)

    assert catalog.get_url(record.short_code) == record
    assert 'find_by_code' not in store.calls


def test_get_url_not_found(catalog):
    """Ensure an unknown code raises URLNotFoundError."""
    with pytest.raises(URLNotFoundError):
        catalog.get_url('missing')


def test_get_url_expired(catalog, store, cache, caplog):
    """Ensure an expired record raises ExpiredURLError and is purged."""
    with freeze_time('2025-10-19 12:00:00') as frozen:
        record = catalog.create_url(LONG_URL, OWNER, lifetime=60)
        frozen.move_to('2025-10-19 12:01:00')

        with caplog.at_level(logging.INFO, logger='tests.catalog'):
            with pytest.raises(ExpiredURLError):
                catalog.get_url(record.short_code)

    assert record.id not in store.records
    assert cache.entries == {}
    assert 'Purged expired URL record.' in caplog.messages


def test_get_url_expired_from_store(catalog, store, cache):
    """Ensure expiry is enforced on store hits as well as cache hits."""
    with freeze_time('2025-10-19 12:00:00') as frozen:
        record = catalog.create_url(LONG_URL, OWNER, lifetime=60)
        cache.entries.clear()
        frozen.tick(120)

        with pytest.raises(ExpiredURLError):
            catalog.get_url(record.short_code)

    assert store.calls.count('delete') == 1
    assert record_code_key(record.short_code) not in cache.entries


def test_get_url_expired_with_failing_purge(catalog, store, caplog):
    """Ensure ExpiredURLError is raised even when the purge fails, and the failure is logged."""
    with freeze_time('2025-10-19 12:00:00') as frozen:
        record = catalog.create_url(LONG_URL, OWNER, lifetime=60)
        store.errors['delete'] = DataStoreError("Can't connect to Redis at redis:6379/0.", operation='store/delete')
        frozen.tick(61)

        with pytest.raises(ExpiredURLError):
            catalog.get_url(record.short_code)

    assert store.calls.count('delete') == 1
    assert record.id in store.records
    assert 'Failed to purge expired URL record.' in caplog.messages


def test_get_url_with_cache_failure(catalog, store, cache, caplog):
    """Ensure cache read failures fall back to the store and are logged."""
    record = catalog.create_url(LONG_URL, OWNER)
    cache.errors['get'] = CacheError('Redis error: LOADING', operation='cache/get')

    assert catalog.get_url(record.short_code) == record
    assert store.calls.count('find_by_code') == 1
    assert 'Failed to read URL record from cache.' in caplog.messages


def test_get_url_with_malformed_cache_entry(catalog, store, cache, caplog):
    """Ensure malformed cache entries are treated as misses."""
    record = catalog.create_url(LONG_URL, OWNER)
    cache.entries[record_code_key(record.short_code)] = '{"id": "url_1"'

    assert catalog.get_url(record.short_code) == record
    assert store.calls.count('find_by_code') == 1
    assert 'Discarding malformed cached URL record.' in caplog.messages
    assert cache.entries[record_code_key(record.short_code)] == record.to_json()


# -------------------------------
# 3. delete_url()
# -------------------------------


def test_delete_url_by_owner(catalog, store, cache):
    """Ensure the owner can delete a record and its cache entries are evicted."""
    record = catalog.create_url(LONG_URL, OWNER)

    assert catalog.delete_url(record.id, OWNER) is None

    assert store.records == {}
    assert cache.entries == {}


def test_delete_url_by_non_owner(catalog, store):
    """Ensure a non-owner gets UnauthorizedError and the record survives."""
    record = catalog.create_url(LONG_URL, OWNER)

    with pytest.raises(UnauthorizedError):
        catalog.delete_url(record.id, 'intruder')

    assert 'delete' not in store.calls
    assert catalog.get_url(record.short_code) == record


def test_delete_url_not_found(catalog):
    """Ensure deleting an unknown record raises URLNotFoundError."""
    with pytest.raises(URLNotFoundError):
        catalog.delete_url('url_404', OWNER)


def test_delete_url_with_cache_failure(catalog, store, cache, caplog):
    """Ensure eviction failures are logged and the delete still succeeds."""
    record = catalog.create_url(LONG_URL, OWNER)
    cache.errors['delete'] = CacheError('Redis error: READONLY', operation='cache/delete')

    catalog.delete_url(record.id, OWNER)

    assert store.records == {}
    assert 'Failed to evict URL record from cache.' in caplog.messages


# -------------------------------
# 4. list_user_urls()
# -------------------------------


def test_list_user_urls(catalog):
    """Ensure only the owner's unexpired records are listed."""
    with freeze_time('2025-10-19 12:00:00') as frozen:
        short_lived = catalog.create_url('https://example.com/short', OWNER, lifetime=60)
        long_lived = catalog.create_url('https://example.com/long', OWNER, lifetime=3_600)
        catalog.create_url('https://example.com/other', 'user-456')
        frozen.tick(120)

        result = catalog.list_user_urls(OWNER)

    assert result == [long_lived]
    assert short_lived not in result


def test_list_user_urls_has_no_side_effects(catalog, store):
    """Ensure listing never purges expired records."""
    with freeze_time('2025-10-19 12:00:00') as frozen:
        record = catalog.create_url(LONG_URL, OWNER, lifetime=60)
        frozen.tick(120)

        assert catalog.list_user_urls(OWNER) == []

    assert record.id in store.records
    assert 'delete' not in store.calls


def test_list_user_urls_without_records(catalog):
    """Ensure owners without records get an empty list."""
    assert catalog.list_user_urls('nobody') == []


# -------------------------------
# 5. End-to-end
# -------------------------------


def test_create_get_delete_get(catalog):
    """Ensure a full lifecycle ends with URLNotFoundError."""
    before = datetime.now(UTC)
    record = catalog.create_url('https://example.com', 'u1')
    after = datetime.now(UTC)

    assert len(record.short_code) == 7
    assert before + timedelta(hours=24) <= record.expires_at <= after + timedelta(hours=24)

    assert catalog.get_url(record.short_code).long_url == 'https://example.com'

    catalog.delete_url(record.id, 'u1')

    with pytest.raises(URLNotFoundError):
        catalog.get_url(record.short_code)
