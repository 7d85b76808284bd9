"""Processing module for the vintage film transformation."""

from .processor import ImageProcessor, BatchProcessingStats, ProcessingResult
from .options import ProcessingOptions
from .exceptions import ProcessingError, DecodeError, InvalidCropError, EncodeError

__all__ = [
    "ImageProcessor",
    "BatchProcessingStats",
    "ProcessingResult",
    "ProcessingOptions",
    "ProcessingError",
    "DecodeError",
    "InvalidCropError",
    "EncodeError",
]
