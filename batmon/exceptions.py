"""
Custom exceptions for batmon.

The analysis engine never raises on bad input; these exceptions belong to
the collaborators around it (storage, collection, report assembly).
"""


class BatmonError(Exception):
    """Base exception for all batmon errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class StorageError(BatmonError):
    """Measurement storage operation failed."""

    pass


class CollectionError(BatmonError):
    """Failed to read a sample from the battery source."""

    def __init__(self, message: str, source: str = None):
        details = {}
        if source:
            details['source'] = source
        super().__init__(message, details)
        self.source = source


class InsufficientDataError(BatmonError):
    """Not enough measurements to build the requested result."""

    def __init__(self, message: str, required: int = None, available: int = None):
        details = {}
        if required is not None:
            details['required'] = required
        if available is not None:
            details['available'] = available
        super().__init__(message, details)
        self.required = required
        self.available = available
