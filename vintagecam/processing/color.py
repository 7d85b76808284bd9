"""Film-stock color pipeline.

The pipeline is a fixed, ordered composition of color operations on a float32
RGB array scaled to [0, 255]. Optional profile fields switch their stage off
when absent. Every stage is a pure function of its input array, so identical
input and profile always produce byte-identical output.
"""

import logging
from typing import Callable, List, Tuple

import numpy as np
from PIL import Image
from scipy import ndimage

from vintagecam.film.profiles import FilmStockProfile, UnsharpMask

logger = logging.getLogger(__name__)

# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)

# Detail amplitude (0-255 scale) separating flat areas from edges when sharpening
SHARPEN_FLAT_THRESHOLD = 2.0

Stage = Callable[[np.ndarray], np.ndarray]


def rgb_to_hsl(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Convert an RGB array in [0, 1] to H, S, L planes in [0, 1]."""
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = np.max(rgb, axis=-1)
    minc = np.min(rgb, axis=-1)
    delta = maxc - minc
    lightness = (maxc + minc) / 2.0

    denom = 1.0 - np.abs(2.0 * lightness - 1.0)
    saturation = np.divide(
        delta, denom, out=np.zeros_like(delta), where=(delta > 1e-12) & (denom > 1e-12)
    )

    safe_delta = np.where(delta > 1e-12, delta, 1.0)
    hue = np.zeros_like(maxc)
    is_r = (maxc == r) & (delta > 1e-12)
    is_g = (maxc == g) & (delta > 1e-12) & ~is_r
    is_b = (delta > 1e-12) & ~is_r & ~is_g
    hue = np.where(is_r, np.mod((g - b) / safe_delta, 6.0), hue)
    hue = np.where(is_g, (b - r) / safe_delta + 2.0, hue)
    hue = np.where(is_b, (r - g) / safe_delta + 4.0, hue)
    hue = hue / 6.0

    return hue, saturation, lightness


def hsl_to_rgb(hue: np.ndarray, saturation: np.ndarray, lightness: np.ndarray) -> np.ndarray:
    """Convert H, S, L planes in [0, 1] back to an RGB array in [0, 1]."""
    chroma = (1.0 - np.abs(2.0 * lightness - 1.0)) * saturation
    h_prime = np.mod(hue, 1.0) * 6.0
    x = chroma * (1.0 - np.abs(np.mod(h_prime, 2.0) - 1.0))
    m = lightness - chroma / 2.0
    zero = np.zeros_like(chroma)

    sector = np.floor(h_prime).astype(np.int32) % 6
    r = np.choose(sector, [chroma, x, zero, zero, x, chroma])
    g = np.choose(sector, [x, chroma, chroma, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, chroma, chroma, x])

    return np.stack([r + m, g + m, b + m], axis=-1)


def modulate(arr: np.ndarray, brightness: float, saturation: float, hue: float) -> np.ndarray:
    """Scale brightness and saturation, then rotate hue by ``hue`` degrees."""
    rgb = np.clip(arr * brightness, 0.0, 255.0) / 255.0
    h, s, l = rgb_to_hsl(rgb)
    s = np.clip(s * saturation, 0.0, 1.0)
    h = np.mod(h + hue / 360.0, 1.0)
    return np.clip(hsl_to_rgb(h, s, l), 0.0, 1.0).astype(np.float32) * 255.0


def apply_gamma(arr: np.ndarray, gamma: float) -> np.ndarray:
    """Power-law gamma correction: out = in ** (1 / gamma)."""
    if gamma <= 0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    normalized = np.clip(arr, 0.0, 255.0) / 255.0
    return np.power(normalized, 1.0 / gamma) * 255.0


def apply_warmth(arr: np.ndarray, warmth: Tuple[int, int, int]) -> np.ndarray:
    """Per-channel linear rescale by (r, g, b) / 255."""
    scale = np.asarray(warmth, dtype=np.float32) / 255.0
    return np.clip(arr * scale, 0.0, 255.0)


def apply_channel_mix(arr: np.ndarray, matrix) -> np.ndarray:
    """Recombine channels: out[i] = sum_j matrix[i][j] * in[j]."""
    m = np.asarray(matrix, dtype=np.float32)
    return np.clip(arr @ m.T, 0.0, 255.0)


def normalize_contrast(arr: np.ndarray, lower: float, upper: float) -> np.ndarray:
    """Stretch luminance so the lower/upper percentiles map to 0/255."""
    luminance = arr @ LUMA_WEIGHTS
    low, high = np.percentile(luminance, [lower, upper])
    if high - low < 1e-6:
        return arr
    return np.clip((arr - low) * (255.0 / (high - low)), 0.0, 255.0)


def sharpen(arr: np.ndarray, mask: UnsharpMask) -> np.ndarray:
    """Unsharp mask on luminance with separate flat/jagged gains."""
    luminance = arr @ LUMA_WEIGHTS
    detail = luminance - ndimage.gaussian_filter(luminance, sigma=mask.sigma)
    gain = np.where(np.abs(detail) <= SHARPEN_FLAT_THRESHOLD, mask.flat, mask.jagged)
    return np.clip(arr + (gain * detail)[..., np.newaxis], 0.0, 255.0)


def soften(arr: np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian blur over the spatial axes only."""
    return ndimage.gaussian_filter(arr, sigma=(sigma, sigma, 0))


class ColorPipeline:
    """Ordered color transform for a single film stock profile.

    Stages run in a fixed order: modulate, gamma, warmth, channel mix,
    contrast normalization, sharpen, softening blur. Warmth, channel mix,
    sharpen and blur are skipped when the profile leaves them unset.

    Attributes:
        profile: Film stock profile driving the stages
    """

    def __init__(self, profile: FilmStockProfile) -> None:
        self.profile = profile

    def stages(self) -> List[Tuple[str, Stage]]:
        """Build the (name, stage) list for this profile.

        Returns:
            Stages in execution order
        """
        p = self.profile
        stages: List[Tuple[str, Stage]] = [
            ("modulate", lambda a: modulate(a, p.brightness, p.saturation, p.hue)),
            ("gamma", lambda a: apply_gamma(a, p.gamma)),
        ]
        if p.warmth is not None:
            stages.append(("warmth", lambda a: apply_warmth(a, p.warmth)))
        if p.channel_mix is not None:
            stages.append(("channel_mix", lambda a: apply_channel_mix(a, p.channel_mix)))
        stages.append(
            ("contrast", lambda a: normalize_contrast(a, p.contrast[0], p.contrast[1]))
        )
        if p.sharpen is not None:
            stages.append(("sharpen", lambda a: sharpen(a, p.sharpen)))
        if p.blur:
            stages.append(("blur", lambda a: soften(a, p.blur)))
        return stages

    def apply_array(self, arr: np.ndarray) -> np.ndarray:
        """Run every stage on a float32 (H, W, 3) array in [0, 255]."""
        out = arr.astype(np.float32, copy=True)
        for name, stage in self.stages():
            out = stage(out)
            logger.debug(f"Color stage applied: {name}")
        return out

    def apply(self, image: Image.Image) -> Image.Image:
        """Apply the pipeline to a Pillow image.

        The alpha channel, if any, passes through untouched.

        Args:
            image: Source image in any mode Pillow can convert to RGB

        Returns:
            New RGB (or RGBA) image
        """
        alpha = None
        if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
            rgba = image.convert("RGBA")
            alpha = rgba.getchannel("A")
            rgb = rgba.convert("RGB")
        else:
            rgb = image.convert("RGB")

        arr = np.asarray(rgb, dtype=np.float32)
        out = self.apply_array(arr)
        result = Image.fromarray(np.clip(np.rint(out), 0, 255).astype(np.uint8), "RGB")

        if alpha is not None:
            result.putalpha(alpha)
        return result


def apply_film_profile(image: Image.Image, profile: FilmStockProfile) -> Image.Image:
    """Apply a film stock profile to an image."""
    return ColorPipeline(profile).apply(image)
