"""flowindex exception hierarchy."""

from __future__ import annotations


class FlowIndexError(Exception):
    """Base exception for all flowindex errors."""


class NotFoundError(FlowIndexError):
    """No row exists for the requested key."""


class DecodeError(FlowIndexError):
    """Key or column bytes could not be decoded."""


class InvalidArgument(FlowIndexError):
    """Caller-supplied value is outside what can be encoded or accepted."""


class StorageError(FlowIndexError):
    """Backing store operation failed."""

    def __init__(self, operation: str, table: str, message: str) -> None:
        self.operation = operation
        self.table = table
        super().__init__(f"{operation} on table {table!r} failed: {message}")


class FormatError(FlowIndexError):
    """Job history contents are not in a recognized format."""
