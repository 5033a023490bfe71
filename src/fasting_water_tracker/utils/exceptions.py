"""Custom exceptions for the fasting and water tracker."""


class TrackerError(Exception):
    """Base exception for all tracker errors."""

    pass


class ConfigurationError(TrackerError):
    """Raised when there is a configuration error."""

    pass


class ValidationError(TrackerError):
    """Raised when a command is rejected before any mutation."""

    pass


class NotFoundError(TrackerError):
    """Raised when a referenced entry does not exist."""

    pass


class InvalidStateError(TrackerError):
    """Raised when a command is not valid in the current session state."""

    pass


class PersistenceError(TrackerError):
    """Raised when loading or saving tracker state fails."""

    pass


class ExportError(TrackerError):
    """Raised when writing export files fails."""

    pass
