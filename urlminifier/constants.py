import string
from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Default short URL lifetime (24 hours in seconds)
    ONE_DAY = 86_400  # 60 * 60 * 24
    # Physical retention of a record after its logical expiry (7 days in seconds)
    ONE_WEEK = 604_800  # 60 * 60 * 24 * 7


class Shortcode:
    """Short code generation parameters."""

    # Base62 alphabet: digits, then uppercase, then lowercase
    ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
    LENGTH = 7
    # Number of digest bytes read as a big-endian unsigned integer
    DIGEST_BYTES = 8
    # Custom alias syntax
    ALIAS_MIN_LENGTH = 3
    ALIAS_MAX_LENGTH = 32
    ALIAS_PATTERN = r'[0-9A-Za-z_-]+'


class Defaults:
    """Default catalog settings."""

    LINK_LIFETIME = TTL.ONE_DAY
    CACHE_TTL = TTL.ONE_DAY
    RETENTION_GRACE = TTL.ONE_WEEK
    MAX_CODE_ATTEMPTS = 3


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'

    class Local(StrEnum):
        # Local (non-AppConfig) configuration overrides
        REDIS_HOST = 'URL_MINIFIER_REDIS_HOST'
        REDIS_PORT = 'URL_MINIFIER_REDIS_PORT'
        REDIS_PASSWORD = 'URL_MINIFIER_REDIS_PASSWORD'  # noqa: S105
        STORE_DB = 'URL_MINIFIER_STORE_DB'
        CACHE_DB = 'URL_MINIFIER_CACHE_DB'
        SOCKET_TIMEOUT = 'URL_MINIFIER_SOCKET_TIMEOUT'
        LINK_LIFETIME = 'URL_MINIFIER_LINK_LIFETIME'
        CACHE_TTL = 'URL_MINIFIER_CACHE_TTL'
        MAX_CODE_ATTEMPTS = 'URL_MINIFIER_MAX_CODE_ATTEMPTS'


# Store operation tags
class Operation(StrEnum):
    STORE_INSERT = 'store/insert'
    STORE_FIND = 'store/find'
    STORE_DELETE = 'store/delete'
    STORE_COUNT = 'store/count'
    STORE_LIST = 'store/list'
    STORE_CLOSE = 'store/close'
    CACHE_GET = 'cache/get'
    CACHE_SET = 'cache/set'
    CACHE_DELETE = 'cache/delete'
    CACHE_CLOSE = 'cache/close'
