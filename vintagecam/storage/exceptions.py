"""Custom exceptions for metadata storage operations."""


class StorageError(Exception):
    """Base exception for metadata storage errors."""
    pass


class StorageConnectionError(StorageError):
    """Exception raised when a storage backend cannot be reached.

    Attributes:
        message: Error message
        backend: Name of the backend that failed
    """

    def __init__(self, message: str, backend: str = None):
        """Initialize storage connection error.

        Args:
            message: Error message
            backend: Name of the backend that failed
        """
        super().__init__(message)
        self.message = message
        self.backend = backend

    def __str__(self) -> str:
        """Return string representation of error."""
        if self.backend:
            return f"Storage connection error ({self.backend}): {self.message}"
        return f"Storage connection error: {self.message}"
