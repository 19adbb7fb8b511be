class URLMinifierError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:url_minifier_error'


class ValidationError(URLMinifierError):
    """Base exception for rejected caller input."""

    error_code = 'validation:validation_error'


class InvalidURLError(ValidationError):
    """Raised when a long URL is not an absolute http(s) URL with a host."""

    error_code = 'validation:invalid_url_error'


class InvalidAliasError(ValidationError):
    """Raised when a custom alias has the wrong length or characters."""

    error_code = 'validation:invalid_alias_error'


class InvalidLifetimeError(ValidationError):
    """Raised when a requested link lifetime is not strictly positive."""

    error_code = 'validation:invalid_lifetime_error'


class CodeExistsError(URLMinifierError):
    """Raised when a requested custom alias is already taken."""

    error_code = 'catalog:code_exists_error'


class ExpiredURLError(URLMinifierError):
    """Raised when a short URL exists but has passed its expiry."""

    error_code = 'catalog:expired_url_error'


class UnauthorizedError(URLMinifierError):
    """Raised when a principal acts on a short URL it does not own."""

    error_code = 'catalog:unauthorized_error'


class ExhaustedRetriesError(URLMinifierError):
    """Raised when no free short code could be derived within the attempt budget."""

    error_code = 'catalog:exhausted_retries_error'


class DeadlineExceededError(URLMinifierError):
    """Raised when the caller's deadline passes before a store/cache call."""

    error_code = 'app:deadline_exceeded_error'

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class MalformedRecordError(URLMinifierError):
    """Raised when a serialized URL record cannot be decoded."""

    error_code = 'app:malformed_record_error'


class ConfigurationError(URLMinifierError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
