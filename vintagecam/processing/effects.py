"""Procedural grain and vignette effects.

Both effects are cosmetic. A failure while synthesizing or compositing
degrades to returning the input image unchanged; it is logged and never
propagated to the caller.
"""

import logging
from typing import Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

GRAIN_SIGMAS = {
    "fine": 8.0,
    "medium": 12.0,
    "coarse": 18.0,
}
DEFAULT_GRAIN_SIZE = "fine"
NEUTRAL_GRAY = 128.0


def _split_alpha(image: Image.Image):
    if image.mode == "RGBA":
        return image.convert("RGB"), image.getchannel("A")
    return image.convert("RGB"), None


def _merge_alpha(arr: np.ndarray, alpha: Optional[Image.Image]) -> Image.Image:
    result = Image.fromarray(np.clip(np.rint(arr), 0, 255).astype(np.uint8), "RGB")
    if alpha is not None:
        result.putalpha(alpha)
    return result


def overlay_blend(base: np.ndarray, layer: np.ndarray) -> np.ndarray:
    """Overlay blend of a single-channel layer onto an RGB base (both 0-255)."""
    a = base / 255.0
    b = (layer / 255.0)[..., np.newaxis]
    result = np.where(a < 0.5, 2.0 * a * b, 1.0 - 2.0 * (1.0 - a) * (1.0 - b))
    return result * 255.0


def multiply_blend(base: np.ndarray, layer: np.ndarray) -> np.ndarray:
    """Multiply blend of a single-channel layer onto an RGB base (both 0-255)."""
    return base * (layer / 255.0)[..., np.newaxis]


def grain_field(
    width: int,
    height: int,
    intensity: float,
    size: str = DEFAULT_GRAIN_SIZE,
    seed: Optional[int] = None
) -> np.ndarray:
    """Generate a single-channel grain layer centered on neutral gray.

    Args:
        width: Layer width in pixels
        height: Layer height in pixels
        intensity: Grain strength in (0, 1]; lower values pull toward gray
        size: Grain size name (fine, medium, coarse)
        seed: Optional RNG seed for reproducible grain

    Returns:
        float array of shape (height, width) in [0, 255]
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid grain dimensions: {width}x{height}")

    sigma = GRAIN_SIGMAS.get(size, GRAIN_SIGMAS[DEFAULT_GRAIN_SIZE])
    rng = np.random.default_rng(seed)
    noise = np.clip(rng.normal(NEUTRAL_GRAY, sigma, size=(height, width)), 0.0, 255.0)
    return noise * intensity + NEUTRAL_GRAY * (1.0 - intensity)


def vignette_mask(width: int, height: int, intensity: float, radius: float) -> np.ndarray:
    """Build the radial darkening mask used by the vignette.

    Distance from the image center is normalized by ``radius * diagonal / 2``;
    the mask value is ``floor(255 * max(0, 1 - distance * intensity))``.

    Returns:
        float array of shape (height, width) in [0, 255]
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid vignette dimensions: {width}x{height}")
    if radius <= 0:
        raise ValueError(f"Vignette radius must be positive, got {radius}")

    center_x = width / 2.0
    center_y = height / 2.0
    max_radius = np.hypot(center_x, center_y) * radius

    y, x = np.ogrid[:height, :width]
    distance = np.sqrt((x - center_x) ** 2 + (y - center_y) ** 2)
    factor = np.maximum(0.0, 1.0 - (distance / max_radius) * intensity)
    return np.floor(255.0 * factor)


def add_film_grain(
    image: Image.Image,
    intensity: float = 0.15,
    size: str = DEFAULT_GRAIN_SIZE,
    seed: Optional[int] = None
) -> Image.Image:
    """Composite procedural film grain onto an image with an overlay blend.

    Args:
        image: Source image
        intensity: Grain strength in (0, 1]
        size: fine, medium or coarse
        seed: Optional RNG seed

    Returns:
        Grained image, or the input unchanged if grain could not be applied
    """
    try:
        width, height = image.size
        layer = grain_field(width, height, intensity, size, seed)
        rgb, alpha = _split_alpha(image)
        base = np.asarray(rgb, dtype=np.float32)
        return _merge_alpha(overlay_blend(base, layer), alpha)
    except Exception as e:
        logger.warning(f"Film grain effect failed, continuing without it: {e}")
        return image


def add_vignette(
    image: Image.Image,
    intensity: float = 0.3,
    radius: float = 0.8
) -> Image.Image:
    """Darken the image edges with a radial multiply mask.

    Args:
        image: Source image
        intensity: Darkening strength in [0, 1]
        radius: Fraction of the half-diagonal where darkening is measured

    Returns:
        Vignetted image, or the input unchanged if the vignette failed
    """
    try:
        width, height = image.size
        mask = vignette_mask(width, height, intensity, radius)
        rgb, alpha = _split_alpha(image)
        base = np.asarray(rgb, dtype=np.float32)
        return _merge_alpha(multiply_blend(base, mask), alpha)
    except Exception as e:
        logger.warning(f"Vignette effect failed, continuing without it: {e}")
        return image
