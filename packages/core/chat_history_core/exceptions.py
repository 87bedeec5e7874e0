# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Custom exceptions for chat history storage.
Allows callers to distinguish between invalid input, missing documents and
storage failures.
"""

from typing import Optional


class ChatHistoryError(Exception):
    """Base exception for all chat history errors."""
    pass


class InvalidArgumentError(ChatHistoryError, ValueError):
    """A required argument was missing, empty or of the wrong type."""
    pass


class DocumentStoreError(ChatHistoryError):
    """A document store operation failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DocumentNotFoundError(DocumentStoreError):
    """The addressed document does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class PreconditionFailedError(DocumentStoreError):
    """A conditional write lost against a concurrent writer (ETag mismatch or already exists)."""
    pass


class StorageFailureError(ChatHistoryError):
    """
    A chat history operation failed in the storage layer.

    Carries the operation name and the session address so the failure can be
    diagnosed from the log line alone. The original error is chained as
    __cause__.
    """

    def __init__(self, message: str, operation: str, user_id: str, session_id: str):
        super().__init__(message)
        self.operation = operation
        self.user_id = user_id
        self.session_id = session_id

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.args[0]!r}, operation={self.operation!r}, "
            f"user_id={self.user_id!r}, session_id={self.session_id!r})"
        )


class ConcurrencyConflictError(StorageFailureError):
    """The session document changed since it was last read; re-fetch and retry."""
    pass
