"""Crop geometry resolution.

Crops are always a hard rectangular extraction: no rotation and no
letterboxing. A crop is either centered on the source at a named aspect ratio
or taken from an explicit user rectangle clamped to the source bounds.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from vintagecam.processing.exceptions import InvalidCropError

logger = logging.getLogger(__name__)

ASPECT_RATIOS = {
    "1:1": 1.0,
    "4:3": 4 / 3,
    "16:9": 16 / 9,
    "3:2": 3 / 2,
    "4:5": 4 / 5,
}

DEFAULT_ASPECT_RATIO = "1:1"
MIN_CROP_SIZE = 10


@dataclass(frozen=True)
class CropRequest:
    """User-supplied crop rectangle, before clamping."""
    x: int
    y: int
    width: int
    height: int

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class CropRegion:
    """Resolved crop rectangle, guaranteed to lie inside the source image.

    Attributes:
        x: Left edge in pixels
        y: Top edge in pixels
        width: Width in pixels
        height: Height in pixels
    """
    x: int
    y: int
    width: int
    height: int

    def as_box(self) -> Tuple[int, int, int, int]:
        """Return the region as a Pillow (left, upper, right, lower) box."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


def ratio_for(aspect_ratio: Optional[str]) -> float:
    """Return the numeric ratio for a named aspect ratio (1:1 if unknown)."""
    ratio = ASPECT_RATIOS.get(aspect_ratio or DEFAULT_ASPECT_RATIO)
    if ratio is None:
        logger.debug(f"Unknown aspect ratio {aspect_ratio!r}, using {DEFAULT_ASPECT_RATIO}")
        ratio = ASPECT_RATIOS[DEFAULT_ASPECT_RATIO]
    return ratio


def _check_source(source_width: int, source_height: int) -> None:
    if source_width <= 0 or source_height <= 0:
        raise InvalidCropError(
            f"Invalid source dimensions: {source_width}x{source_height}"
        )


def resolve_ratio_crop(
    source_width: int,
    source_height: int,
    aspect_ratio: Optional[str] = DEFAULT_ASPECT_RATIO
) -> CropRegion:
    """Compute the largest centered crop with the given aspect ratio.

    Args:
        source_width: Source image width in pixels
        source_height: Source image height in pixels
        aspect_ratio: Named ratio such as "4:3"; unknown names use 1:1

    Returns:
        CropRegion centered on the source

    Raises:
        InvalidCropError: If the source dimensions are not positive

    Examples:
        >>> resolve_ratio_crop(1200, 800, "1:1")
        CropRegion(x=200, y=0, width=800, height=800)
    """
    _check_source(source_width, source_height)
    ratio = ratio_for(aspect_ratio)

    if source_width / source_height > ratio:
        crop_height = source_height
        crop_width = crop_height * ratio
    else:
        crop_width = source_width
        crop_height = crop_width / ratio

    x = math.floor((source_width - crop_width) / 2)
    y = math.floor((source_height - crop_height) / 2)
    width = max(1, math.floor(crop_width))
    height = max(1, math.floor(crop_height))

    return CropRegion(x=x, y=y, width=width, height=height)


def clamp_custom_crop(
    source_width: int,
    source_height: int,
    crop: CropRequest
) -> CropRegion:
    """Clamp a user-supplied rectangle to the source bounds.

    Args:
        source_width: Source image width in pixels
        source_height: Source image height in pixels
        crop: Requested rectangle

    Returns:
        Clamped CropRegion

    Raises:
        InvalidCropError: If the clamped width or height is below
            MIN_CROP_SIZE pixels
    """
    _check_source(source_width, source_height)

    x = max(0, min(int(crop.x), source_width - 1))
    y = max(0, min(int(crop.y), source_height - 1))
    width = min(int(crop.width), source_width - x)
    height = min(int(crop.height), source_height - y)

    if width < MIN_CROP_SIZE or height < MIN_CROP_SIZE:
        raise InvalidCropError(
            f"Crop dimensions too small: {width}x{height}",
            width=width,
            height=height
        )

    return CropRegion(x=x, y=y, width=width, height=height)


def resolve_crop(
    source_width: int,
    source_height: int,
    aspect_ratio: Optional[str] = DEFAULT_ASPECT_RATIO,
    crop: Optional[CropRequest] = None
) -> CropRegion:
    """Resolve the crop region; an explicit rectangle selects custom mode."""
    if crop is not None:
        return clamp_custom_crop(source_width, source_height, crop)
    return resolve_ratio_crop(source_width, source_height, aspect_ratio)
