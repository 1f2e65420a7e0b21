# ========================
# timeusage/pipeline/exceptions.py
# ========================

"""
Pipeline Exceptions

Errors raised by the pipeline stages. Loading and schema problems are fatal
and abort the run before any output is written; empty demographic groups are
only reported as a warning.
"""


class TimeUsageError(Exception):
    """Base class for all pipeline errors."""


class LoadError(TimeUsageError):
    """The survey file is missing, unreadable, empty or has a malformed header."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class SchemaError(TimeUsageError):
    """A required column is absent or a column cannot be cast to its type."""

    def __init__(self, message: str, column: str = None):
        super().__init__(message)
        self.column = column


class EmptyGroupWarning(UserWarning):
    """Some demographic combinations never appear in the eligible population."""
