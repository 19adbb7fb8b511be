from typing import Any


# Type aliases for Python dictionaries
type AppConfig = dict[str, Any]
type SerializedURLRecord = dict[str, Any]
