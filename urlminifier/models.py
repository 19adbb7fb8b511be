"""URL record data model and its serialized representation.

The serialized shape is shared by the durable store and the lookup cache:

    {
        "id": "url_1760875200000000000_9f2c01ab",
        "long_url": "https://example.com/article/123",
        "short_code": "4kQ9zXa",
        "user_id": "user-123",
        "created_at": "2025-10-19T12:00:00+00:00",
        "expires_at": "2025-10-20T12:00:00+00:00",
        "custom_alias": "my-alias"          # omitted when no alias was requested
    }
"""

import json
from dataclasses import dataclass
from datetime import datetime, UTC

from urlminifier.types import SerializedURLRecord
from urlminifier.exceptions import MalformedRecordError


@dataclass(frozen=True)
class URLRecord:
    """Represent a shortened URL mapping.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> now = datetime.now(UTC)
        >>> record = URLRecord(
        ...     id='url_1',
        ...     long_url='https://example.com/article/123',
        ...     short_code='4kQ9zXa',
        ...     owner_id='user-123',
        ...     created_at=now,
        ...     expires_at=now + timedelta(hours=24),
        ... )
        >>> record.expired(now)
        False
    """

    # fmt: off
    id: str                             # Process-unique identifier, assigned at creation
    long_url: str                       # Original long URL
    short_code: str                     # Unique short code (derived or custom alias)
    owner_id: str                       # Opaque identifier of the creating principal
    created_at: datetime                # Creation instant (UTC)
    expires_at: datetime                # Instant after which the record is logically dead
    custom_alias: str | None = None     # Echoes the alias if one was requested
    # fmt: on

    def __post_init__(self):
        if self.expires_at <= self.created_at:
            raise ValueError(f'expires_at ({self.expires_at.isoformat()}) must be after created_at ({self.created_at.isoformat()}).')
        if self.custom_alias and self.custom_alias != self.short_code:
            raise ValueError(f"Custom alias '{self.custom_alias}' must equal short code '{self.short_code}'.")

    def expired(self, now: datetime | None = None) -> bool:
        """Return True once `now` has reached `expires_at`."""
        return (now or datetime.now(UTC)) >= self.expires_at

    def to_dict(self) -> SerializedURLRecord:
        data = {
            'id': self.id,
            'long_url': self.long_url,
            'short_code': self.short_code,
            'user_id': self.owner_id,
            'created_at': self.created_at.isoformat(),
            'expires_at': self.expires_at.isoformat(),
        }
        if self.custom_alias:
            data['custom_alias'] = self.custom_alias
        return data

    @classmethod
    def from_dict(cls, data: SerializedURLRecord) -> 'URLRecord':
        """Build a URLRecord from its serialized shape.

        Raises:
            MalformedRecordError:
                If a required field is missing, a timestamp can't be parsed,
                or the decoded values violate the record invariants.
        """
        try:
            return cls(
                id=data['id'],
                long_url=data['long_url'],
                short_code=data['short_code'],
                owner_id=data['user_id'],
                created_at=_parse_timestamp(data['created_at']),
                expires_at=_parse_timestamp(data['expires_at']),
                custom_alias=data.get('custom_alias') or None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedRecordError(f'Malformed URL record: {e}') from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)

    @classmethod
    def from_json(cls, blob: str | bytes) -> 'URLRecord':
        try:
            data = json.loads(blob)
        except (TypeError, ValueError) as e:
            raise MalformedRecordError('URL record payload is not valid JSON.') from e
        if not isinstance(data, dict):
            raise MalformedRecordError(f'URL record payload must be a JSON object (given type: {type(data).__name__}).')
        return cls.from_dict(data)


def _parse_timestamp(value: str) -> datetime:
    timestamp = datetime.fromisoformat(value)
    # Naive timestamps are assumed to be UTC
    return timestamp if timestamp.tzinfo is not None else timestamp.replace(tzinfo=UTC)
