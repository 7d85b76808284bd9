"""Custom exceptions for vintagecam API client operations."""


class ClientError(Exception):
    """Base exception for vintagecam client errors."""
    pass


class ClientAPIError(ClientError):
    """Exception raised when the API returns an error response.

    Attributes:
        message: Error message
        status_code: HTTP status code
        response: Parsed error body (if available)
    """

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response: Parsed error body
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __str__(self) -> str:
        """Return string representation of error."""
        if self.status_code:
            return f"vintagecam API Error ({self.status_code}): {self.message}"
        return f"vintagecam API Error: {self.message}"


class ClientNotFoundError(ClientAPIError):
    """Exception raised when an image is not found (404)."""
    pass


class ClientCapacityError(ClientAPIError):
    """Exception raised when the server is overloaded (503)."""

    def __init__(self, message: str, retry_after: int = None, response: dict = None):
        """Initialize capacity error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retrying (if provided)
            response: Parsed error body
        """
        super().__init__(message, status_code=503, response=response)
        self.retry_after = retry_after

    def __str__(self) -> str:
        """Return string representation of error."""
        if self.retry_after:
            return f"vintagecam server busy. Retry after {self.retry_after} seconds."
        return "vintagecam server busy."
