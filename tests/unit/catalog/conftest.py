import logging

import pytest

from urlminifier.catalog import URLCatalog
from urlminifier.dao.base import LookupCacheBaseDAO, URLRecordBaseDAO
from urlminifier.dao.exceptions import DuplicateCodeError, URLNotFoundError
from urlminifier.models import URLRecord


class InMemoryURLRecordDAO(URLRecordBaseDAO):
    """Dictionary-backed record store double.

    Attributes:
        calls (list[str]): names of the store methods called, in order.
        errors (dict[str, Exception]): exception raised by a method instead of running it.
        race_codes (set[str]): codes reported free by code_available() but rejected by insert(),
            as if a concurrent caller claimed them in between.
        on_insert (Callable | None): hook run after a successful insert.
    """

    def __init__(self):
        self.records: dict[str, URLRecord] = {}
        self.codes: dict[str, str] = {}
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}
        self.race_codes: set[str] = set()
        self.on_insert = None
        self.closed = 0

    def _enter(self, name: str, kwargs: dict) -> None:
        self.calls.append(name)
        deadline = kwargs.get('deadline')
        if deadline is not None:
            deadline.check(f'store/{name}')
        if name in self.errors:
            raise self.errors[name]

    def insert(self, record, **kwargs):
        self._enter('insert', kwargs)
        if record.short_code in self.codes or record.short_code in self.race_codes:
            raise DuplicateCodeError(f"Short code '{record.short_code}' already exists.")
        self.records[record.id] = record
        self.codes[record.short_code] = record.id
        if self.on_insert is not None:
            self.on_insert()
        return self

    def find_by_code(self, short_code, **kwargs):
        self._enter('find_by_code', kwargs)
        if short_code not in self.codes:
            raise URLNotFoundError(f"URL with short code '{short_code}' not found.")
        return self.records[self.codes[short_code]]

    def find_by_id(self, record_id, **kwargs):
        self._enter('find_by_id', kwargs)
        if record_id not in self.records:
            raise URLNotFoundError(f"URL with id '{record_id}' not found.")
        return self.records[record_id]

    def delete(self, record_id, **kwargs):
        self._enter('delete', kwargs)
        record = self.records.pop(record_id, None)
        if record is None:
            raise URLNotFoundError(f"URL with id '{record_id}' not found.")
        del self.codes[record.short_code]
        return 1

    def code_available(self, short_code, **kwargs):
        self._enter('code_available', kwargs)
        return short_code not in self.codes

    def list_by_owner(self, owner_id, **kwargs):
        self._enter('list_by_owner', kwargs)
        return [record for record in self.records.values() if record.owner_id == owner_id]

    def close(self):
        self.closed += 1


class InMemoryLookupCacheDAO(LookupCacheBaseDAO):
    """Dictionary-backed lookup cache double (TTLs are recorded, not enforced)."""

    def __init__(self):
        self.entries: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}
        self.closed = 0

    def _enter(self, name: str, kwargs: dict) -> None:
        self.calls.append(name)
        deadline = kwargs.get('deadline')
        if deadline is not None:
            deadline.check(f'cache/{name}')
        if name in self.errors:
            raise self.errors[name]

    def get(self, key, **kwargs):
        self._enter('get', kwargs)
        return self.entries.get(key)

    def set(self, key, value, ttl, **kwargs):
        self._enter('set', kwargs)
        self.entries[key] = value
        self.ttls[key] = ttl
        return self

    def delete(self, *keys, **kwargs):
        self._enter('delete', kwargs)
        return sum(self.entries.pop(key, None) is not None for key in keys)

    def close(self):
        self.closed += 1


@pytest.fixture
def store():
    return InMemoryURLRecordDAO()


@pytest.fixture
def cache():
    return InMemoryLookupCacheDAO()


@pytest.fixture
def catalog_logger():
    return logging.getLogger('tests.catalog')


@pytest.fixture
def catalog(store, cache, catalog_logger):
    return URLCatalog(store, cache, default_lifetime=86_400, cache_ttl=3_600, max_attempts=3, logger=catalog_logger)
