"""Helper utilities shared by the catalog and its DAOs.

Functions:
    validate_url(long_url: str) -> str
        Ensure a long URL is an absolute http(s) URL with a host
    new_record_id() -> str
        Generate a unique URL record identifier
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present

Classes:
    Deadline
        Caller-supplied point in time after which store/cache calls must not start

Example:
    >>> from urlminifier.utils.helpers import validate_url, Deadline
    >>> validate_url('https://example.com/blog/article-123')
    'https://example.com/blog/article-123'

    >>> deadline = Deadline.after(2.5)
    >>> deadline.expired()
    False
"""

import os
import time
import secrets
import functools
import urllib.parse
from dataclasses import dataclass
from collections.abc import Callable

from urlminifier.exceptions import InvalidURLError, DeadlineExceededError, MissingEnvironmentVariableError


ALLOWED_URL_SCHEMES = frozenset({'http', 'https'})


def validate_url(long_url: str) -> str:
    """Ensure `long_url` is an absolute http(s) URL with a non-empty host

    Args:
        long_url (str):
            URL to validate.

    Returns:
        str: the unchanged URL.

    Raises:
        InvalidURLError:
            If the URL can't be parsed, its scheme isn't http/https, or it has no host.

    Example:
        >>> validate_url('ftp://example.com')
        Traceback (most recent call last):
            ...
        urlminifier.exceptions.InvalidURLError: Invalid URL 'ftp://example.com' (scheme must be http or https).
    """
    if not isinstance(long_url, str) or not long_url:
        raise InvalidURLError(f'Invalid URL {long_url!r} (must be a non-empty string).')

    try:
        components = urllib.parse.urlsplit(long_url)
        hostname = components.hostname
    except ValueError as e:
        raise InvalidURLError(f'Invalid URL {long_url!r} (unparsable).') from e

    if components.scheme not in ALLOWED_URL_SCHEMES:
        raise InvalidURLError(f'Invalid URL {long_url!r} (scheme must be http or https).')
    if not hostname:
        raise InvalidURLError(f'Invalid URL {long_url!r} (missing host).')
    return long_url


def new_record_id() -> str:
    """Generate a URL record identifier as url_<nanosecond timestamp>_<random hex>"""
    return f'url_{time.time_ns()}_{secrets.token_hex(4)}'


@dataclass(frozen=True)
class Deadline:
    """Point on the monotonic clock after which store/cache calls must not start.

    A catalog operation builds one Deadline from its `timeout` argument and hands
    it to every DAO call it makes (as the `deadline` keyword argument).

    The deadline is checked before a call starts. A Redis command already in
    flight is bounded only by the client's `redis_socket_timeout`.
    """

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> 'Deadline':
        return cls(expires_at=time.monotonic() + seconds)

    @classmethod
    def from_timeout(cls, seconds: float | None) -> 'Deadline | None':
        return None if seconds is None else cls.after(seconds)

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self, operation: str | None = None) -> None:
        """Raise DeadlineExceededError if the deadline has already passed"""
        if self.expired():
            label = f' before {operation}' if operation else ''
            raise DeadlineExceededError(f'Deadline exceeded{label}.', operation=operation)


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator
