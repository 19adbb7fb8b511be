import os

from urlminifier.constants import ENV


def running_locally() -> bool:
    """Return True if running outside AWS (APP_ENV=local), False otherwise."""
    return os.getenv(ENV.App.APP_ENV, 'local').lower() == 'local'
