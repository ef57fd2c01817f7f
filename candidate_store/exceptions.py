"""Custom exception hierarchy for the candidate store."""

from __future__ import annotations


class CandidateStoreError(Exception):
    """Base exception for all candidate-store errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CandidateStoreError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(CandidateStoreError):
    """Base class for validation errors."""
    pass


class InvalidCandidateIdError(ValidationError):
    """Raised when a candidate id cannot be used as a key segment."""
    pass


class AccessDeniedError(ValidationError):
    """Raised when a requested file lies outside the served candidate data."""
    pass


class StorageError(CandidateStoreError):
    """Raised when storage operations fail."""
    pass


class StorageWriteError(StorageError):
    """Raised when one or more artifact writes of an operation fail."""
    pass


class StorageListingError(StorageError):
    """Raised when a backend listing fails for a reason other than a missing prefix."""
    pass


class UnsupportedOperationError(StorageError):
    """Raised when the configured backend does not offer an operation."""
    pass


class FileNotFoundError(CandidateStoreError):
    """Raised when a requested artifact file is not found."""
    pass


__all__ = [
    "CandidateStoreError",
    "ConfigurationError",
    "ValidationError",
    "InvalidCandidateIdError",
    "AccessDeniedError",
    "StorageError",
    "StorageWriteError",
    "StorageListingError",
    "UnsupportedOperationError",
    "FileNotFoundError",
]
