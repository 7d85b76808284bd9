"""Services for the vintagecam web API."""

from .admission import MemoryGate
from .exceptions import CapacityError, NotFoundError, ServiceError, ValidationError
from .images import ImageService

__all__ = [
    "ImageService",
    "MemoryGate",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "CapacityError",
]
