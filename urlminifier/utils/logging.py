"""Application-wide logging initialization

The urlminifier package only emits records on module loggers; it never
configures handlers itself. The host process (web app, worker or script
embedding the catalog) calls `initialize_logging()` once in its entry point,
before `URLCatalog.from_config(load_config())`:

    >>> from urlminifier.utils import initialize_logging, load_config
    >>> from urlminifier.catalog import URLCatalog
    >>> initialize_logging()
    >>> catalog = URLCatalog.from_config(load_config())

Logging format:
{
    "timestamp": "2025-12-26T12:00:00.000Z",
    "level": "WARNING",
    "logger": "urlminifier.catalog",
    "message": "Failed to write URL record to cache.",
    "record_id": "url_1760875200000000000_9f2c4e1a",
    "error": "[cache/set] Redis at redis:6379/1 timed out."
}
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from urlminifier.constants import ENV


# Attributes every LogRecord carries; anything else arrived through `extra`
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'taskName'}


class JsonFormatter(logging.Formatter):
    """Render a LogRecord as one JSON document, `extra` fields included"""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        document = {
            'timestamp': created.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        document.update((key, value) for key, value in vars(record).items() if key not in _RESERVED_ATTRS)

        if record.exc_info:
            document['exception'] = self.formatException(record.exc_info)

        return json.dumps(document, default=str)


def initialize_logging(level: str | None = None) -> None:
    """Send every record to stdout as JSON

    Args:
        level (str | None):
            Root log level. Defaults to $LOG_LEVEL, then INFO.
    """
    level = (level or os.getenv(ENV.App.LOG_LEVEL) or 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {'json': {'()': JsonFormatter}},
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                }
            },
            'root': {'level': level, 'handlers': ['stdout']},
        }
    )
