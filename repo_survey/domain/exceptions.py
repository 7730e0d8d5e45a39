"""Exception hierarchy shared by every layer."""


class SurveyError(Exception):
    """Base class for all errors raised by repo_survey."""
    pass


class ConfigurationError(SurveyError):
    """Raised when required configuration is missing or malformed."""
    pass


class ForgeError(SurveyError):
    """Raised when a GitHub API call fails."""
    pass


class RateLimitException(ForgeError):
    """Exception raised when rate limit is hit."""
    pass


class PayloadError(ForgeError):
    """Raised when a GitHub response is missing a required field."""
    pass


class CloneError(SurveyError):
    """Raised when a working tree cannot be cloned or removed."""
    pass


class StorageError(SurveyError):
    """Raised when a finished record cannot be persisted."""
    pass
