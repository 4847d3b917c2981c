"""Custom exception hierarchy."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class TransientIOError(AppError):
    """Raised when a call to an external collaborator fails."""
    pass


class APIClientError(TransientIOError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class StorageError(TransientIOError):
    """Raised when a storage download or removal fails."""
    pass


class MalformedModelOutputError(AppError):
    """Raised when the model response is not the expected JSON document."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class DocumentNotFoundError(AppError):
    """Raised when a document is not found."""
    pass


class BenefitNotFoundError(AppError):
    """Raised when an extracted benefit is not found."""
    pass


class InvalidStatusTransitionError(AppError):
    """Raised when a document status change is not a legal lifecycle step."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Illegal status transition: {current} -> {target}")
        self.current = current
        self.target = target


class WorkerPoolFullError(AppError):
    """Raised when the extraction pool cannot accept more jobs."""
    pass


class PollingTransientError(AppError):
    """Raised by status readers when a status query fails."""
    pass
