"""Custom exceptions raised by the web service layer."""


class ServiceError(Exception):
    """Base exception for service-layer errors."""
    pass


class ValidationError(ServiceError):
    """Exception raised when a request is malformed (400)."""
    pass


class NotFoundError(ServiceError):
    """Exception raised when an image or processed image is unknown (404)."""
    pass


class CapacityError(ServiceError):
    """Exception raised when the server is too loaded to process (503).

    Attributes:
        retry_after: Seconds the client should wait before retrying
    """

    def __init__(self, message: str, retry_after: int = 30):
        """Initialize capacity error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retrying
        """
        super().__init__(message)
        self.retry_after = retry_after
