"""Custom exceptions for the image transformation pipeline."""


class ProcessingError(Exception):
    """Base exception for image processing errors."""
    pass


class DecodeError(ProcessingError):
    """Raised when the source is missing or is not a decodable raster image."""
    pass


class InvalidCropError(ProcessingError):
    """Raised when a crop rectangle cannot be resolved to a usable region.
    
    Attributes:
        width: Clamped crop width (if known)
        height: Clamped crop height (if known)
    """
    
    def __init__(self, message: str, width: int = None, height: int = None):
        """Initialize invalid crop error.
        
        Args:
            message: Error message
            width: Clamped crop width
            height: Clamped crop height
        """
        super().__init__(message)
        self.width = width
        self.height = height


class EncodeError(ProcessingError):
    """Raised when the processed image cannot be encoded to the output format."""
    pass
