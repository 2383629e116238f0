"""
Exception hierarchy for the tree graph engine.

Boundary failures (bad inputs, bad config, data source outages) are raised
as subclasses of TreeGraphError so callers can catch them in one place.
"""


class TreeGraphError(Exception):
    """Base class for all engine errors."""


class InputValidationError(TreeGraphError):
    """Raised when history, similarity map or callbacks are malformed."""


class TreeInvariantError(TreeGraphError):
    """Raised when a mutation would break the single-rooted tree."""


class ConfigError(TreeGraphError, ValueError):
    """Raised when configuration values are out of range."""


class DataSourceError(TreeGraphError):
    """Raised when the collection API cannot be reached or answers badly."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class FrameLoopError(TreeGraphError):
    """Raised when a frame loop is started on a disposed engine."""
