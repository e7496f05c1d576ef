"""
Exception hierarchy for the moderation pipeline.

Configuration errors are raised at startup and stop moderation from
activating. Backend, timeout and action errors are scoped to a single
message and are handled inside the post processor.
"""


class ModerationError(Exception):
    """Base exception for moderation-related errors."""
    pass


class ConfigurationError(ModerationError, ValueError):
    """Raised when configuration is missing or invalid."""
    pass


class BackendError(ModerationError):
    """Raised when the classification backend rejects a request."""
    pass


class TransientBackendError(BackendError):
    """Raised on network failures and 429/5xx responses; safe to retry."""
    pass


class BackendAuthError(BackendError):
    """Raised when the backend rejects the configured credentials."""
    pass


class ModerationTimeoutError(ModerationError):
    """Raised when classification does not finish before its deadline."""
    pass


class ActionExecutionError(ModerationError):
    """Raised when a remedial action could not be applied to a message."""
    pass


BackendUnavailable = TransientBackendError
InvalidCredential = BackendAuthError
