"""Utility functions for application configuration management.

This module provides a standardized interface to the catalog's configuration.
In AWS, configuration is stored in **AWS AppConfig**: each environment
(`APP_ENV`) has a dedicated AppConfig *Environment* within the shared AppConfig
*Application* identified by `APP_NAME`. When running locally, the same document
is assembled from `URL_MINIFIER_*` environment variables with sensible defaults.

The configuration JSON follows this structure:

    {
        "build": 42,
        "store": {"host": "redis", "port": 6379, "db": 0, ...},
        "cache": {"host": "redis", "port": 6379, "db": 1, ...},
        "catalog": {"default_lifetime": 86400, "cache_ttl": 86400, "max_attempts": 3}
    }

The "store" and "cache" sections hold keyword arguments for the Redis clients
(host, port, db, username, password, socket_timeout). The "catalog" section
holds URLCatalog settings in seconds/attempts.

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`), defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return application prefix for DAOs, or None if `APP_NAME` is not set.

    load_config() -> dict
        Load the configuration document and validate its sections.

Example:
    >>> from urlminifier.utils.config import load_config
    >>> config = load_config()
    >>> config['store']['host']
    'localhost'
"""

import os
import json
import functools
import logging
from collections.abc import Callable

import boto3

from urlminifier.types import AppConfig
from urlminifier.constants import ENV, Defaults
from urlminifier.exceptions import BadConfigurationError
from urlminifier.utils.helpers import require_environment
from urlminifier.utils.runtime import running_locally


logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ('store', 'cache', 'catalog')


def app_env() -> str:
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Example:
        >>> os.environ['APP_NAME'] = 'urlminifier'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'urlminifier:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise BadConfigurationError(f'Environment variable {name} must be an integer (given value: {raw!r}).') from e


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.environ.get(name)
    if raw in (None, ''):
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise BadConfigurationError(f'Environment variable {name} must be a number (given value: {raw!r}).') from e


def local_config() -> AppConfig:
    """Assemble the configuration document from URL_MINIFIER_* environment variables"""
    redis_config = {
        'host': os.environ.get(ENV.Local.REDIS_HOST, 'localhost'),
        'port': _env_int(ENV.Local.REDIS_PORT, 6379),
        'password': os.environ.get(ENV.Local.REDIS_PASSWORD) or None,
        'socket_timeout': _env_float(ENV.Local.SOCKET_TIMEOUT, 5.0),
    }
    return {
        'build': 'local',
        'store': {**redis_config, 'db': _env_int(ENV.Local.STORE_DB, 0)},
        'cache': {**redis_config, 'db': _env_int(ENV.Local.CACHE_DB, 1)},
        'catalog': {
            'default_lifetime': _env_int(ENV.Local.LINK_LIFETIME, Defaults.LINK_LIFETIME),
            'cache_ttl': _env_int(ENV.Local.CACHE_TTL, Defaults.CACHE_TTL),
            'max_attempts': _env_int(ENV.Local.MAX_CODE_ATTEMPTS, Defaults.MAX_CODE_ATTEMPTS),
        },
    }


def _load_local_config(func: Callable[[], AppConfig]) -> Callable[[], AppConfig]:
    """Decorator: build configuration from the environment when running locally

    Behavior:
        - If the application is running locally (APP_ENV=local), skip AWS AppConfig
          and return `local_config()`.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).
    """

    @functools.wraps(func)
    def wrapper() -> AppConfig:
        if not running_locally():
            return func()

        logger.debug('Loading configuration from local environment.')
        return local_config()

    return wrapper


def _validate_sections(func: Callable[[], AppConfig]) -> Callable[[], AppConfig]:
    """Decorator: ensure the loaded document has every required section"""

    @functools.wraps(func)
    def wrapper() -> AppConfig:
        config = func()
        if not isinstance(config, dict):
            raise BadConfigurationError(f'Configuration must be a JSON object (given type: {type(config).__name__}).')
        missing = [section for section in REQUIRED_SECTIONS if not isinstance(config.get(section), dict)]
        if missing:
            missing_list = ', '.join(f"'{section}'" for section in missing)
            raise BadConfigurationError(f'Configuration is missing required sections: {missing_list}')
        return config

    return wrapper


@_validate_sections
@_load_local_config
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config() -> AppConfig:
    """Load the catalog configuration document from AWS AppConfig

    Environment variables required (outside local mode):
        APPCONFIG_APP_ID       – AppConfig Application ID
        APPCONFIG_ENV_ID       – AppConfig Environment ID
        APPCONFIG_PROFILE_ID   – AppConfig Configuration Profile ID

    Returns:
        dict: The configuration document as a Python dictionary.

    Raises:
        MissingEnvironmentVariableError:
            If AppConfig identifiers are missing from the environment.
        BadConfigurationError:
            If the document is not valid JSON or lacks a required section.
    """
    logger.debug('Trying to load configuration from AWS AppConfig.')

    appconfig = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    try:
        config = json.loads(content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BadConfigurationError('AppConfig document is not valid JSON.') from e

    logger.debug('Loaded configuration from AWS AppConfig.', extra={'build': config.get('build')})
    return config
