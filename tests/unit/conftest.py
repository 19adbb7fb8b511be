from datetime import datetime, timedelta, UTC

import pytest

from urlminifier.models import URLRecord


@pytest.fixture
def created_at() -> datetime:
    return datetime(2025, 10, 19, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def record(created_at) -> URLRecord:
    """Provide a URL record living from 2025-10-19 12:00 to 2025-10-20 12:00 (UTC)."""
    return URLRecord(
        id='url_1760875200000000000_9f2c01ab',
        long_url='https://example.com/article/123',
        short_code='4kQ9zXa',
        owner_id='user-123',
        created_at=created_at,
        expires_at=created_at + timedelta(days=1),
    )
