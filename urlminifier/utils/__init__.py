from urlminifier.utils.config import app_env, app_name, app_prefix, load_config
from urlminifier.utils.helpers import Deadline, validate_url, new_record_id, require_environment
from urlminifier.utils.shortener import CodeGenerator
from urlminifier.utils.logging import initialize_logging


__all__ = [
    'CodeGenerator',
    'Deadline',
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'validate_url',
    'new_record_id',
    'require_environment',
    'initialize_logging',
]
