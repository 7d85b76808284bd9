"""vintagecam - vintage film photo processing.

Crop a photo to an aspect ratio or an explicit rectangle, recolor it to
emulate a named film stock and optionally add procedural grain and a
vignette. Uploaded and processed images are tracked in an expiring metadata
store backed by Redis, with automatic fallback to local disk.
"""

from vintagecam._version import __version__, __version_info__
from vintagecam.config import ConfigManager
from vintagecam.film import FilmStock, get_profile
from vintagecam.processing import ImageProcessor, ProcessingOptions

__all__ = [
    "__version__",
    "__version_info__",
    "ConfigManager",
    "FilmStock",
    "get_profile",
    "ImageProcessor",
    "ProcessingOptions",
]
