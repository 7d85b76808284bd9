"""Film stock profiles driving the color pipeline.

Each profile is a fixed set of design constants tuned by eye to emulate the
look of a physical film stock. The table is built once at import time and is
read-only afterwards, so it can be shared freely between requests.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class FilmStock(str, Enum):
    """Supported film stock identifiers."""

    CLASSIC_CHROME = "classic_chrome"
    PRO_NEG_HI = "pro_neg_hi"
    VELVIA = "velvia"
    CLASSIC_NEG = "classic_neg"
    PORTRA_400 = "portra_400"
    KODACHROME = "kodachrome"

    @classmethod
    def parse(cls, value: Optional[Union[str, "FilmStock"]]) -> "FilmStock":
        """Resolve a caller-supplied identifier to a film stock.

        Unknown or missing identifiers fall back to classic_chrome.

        Args:
            value: Film stock identifier (case-insensitive) or FilmStock

        Returns:
            Matching FilmStock

        Examples:
            >>> FilmStock.parse("velvia")
            <FilmStock.VELVIA: 'velvia'>
            >>> FilmStock.parse("agfa_vista")
            <FilmStock.CLASSIC_CHROME: 'classic_chrome'>
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        if value is not None:
            logger.debug(f"Unknown film stock {value!r}, using classic_chrome")
        return cls.CLASSIC_CHROME


@dataclass(frozen=True)
class UnsharpMask:
    """Unsharp mask parameters.

    Attributes:
        sigma: Gaussian sigma of the blur used to isolate detail
        flat: Gain applied to low-amplitude detail (flat areas)
        jagged: Gain applied to high-amplitude detail (edges)
    """
    sigma: float
    flat: float
    jagged: float


@dataclass(frozen=True)
class FilmStockProfile:
    """Color transform parameters for one film stock.

    Attributes:
        brightness: Brightness multiplier
        saturation: Saturation multiplier
        hue: Hue rotation in degrees
        gamma: Gamma exponent (> 0)
        contrast: (lower, upper) percentile window for contrast normalization
        warmth: Optional (r, g, b) tint on a 0-255 scale
        channel_mix: Optional 3x3 channel recombination matrix
        sharpen: Optional unsharp mask
        blur: Optional softening blur sigma, applied after sharpening
    """
    brightness: float
    saturation: float
    hue: float
    gamma: float
    contrast: Tuple[float, float]
    warmth: Optional[Tuple[int, int, int]] = None
    channel_mix: Optional[Tuple[Tuple[float, float, float], ...]] = None
    sharpen: Optional[UnsharpMask] = None
    blur: Optional[float] = None

    def __post_init__(self) -> None:
        if self.gamma <= 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        lower, upper = self.contrast
        if not 0 <= lower < upper <= 100:
            raise ValueError(f"Invalid contrast window: {self.contrast}")
        if self.channel_mix is not None:
            if len(self.channel_mix) != 3 or any(len(row) != 3 for row in self.channel_mix):
                raise ValueError("channel_mix must be a 3x3 matrix")


FILM_STOCK_PROFILES: Mapping[FilmStock, FilmStockProfile] = MappingProxyType({
    FilmStock.CLASSIC_CHROME: FilmStockProfile(
        brightness=1.02,
        saturation=0.75,
        hue=3,
        gamma=1.25,
        contrast=(8, 94),
        warmth=(252, 248, 245),
        channel_mix=(
            (1.02, 0.03, -0.02),
            (-0.02, 1.0, 0.02),
            (0.01, -0.01, 0.98),
        ),
        sharpen=UnsharpMask(sigma=0.4, flat=0.5, jagged=1.8),
        blur=0.3,
    ),
    FilmStock.PRO_NEG_HI: FilmStockProfile(
        brightness=1.05,
        saturation=0.88,
        hue=5,
        gamma=1.2,
        contrast=(12, 92),
        warmth=(255, 251, 247),
        channel_mix=(
            (1.0, 0.02, -0.01),
            (-0.01, 1.01, 0.01),
            (0.02, -0.02, 1.0),
        ),
        sharpen=UnsharpMask(sigma=0.3, flat=0.8, jagged=1.5),
        blur=0.3,
    ),
    FilmStock.VELVIA: FilmStockProfile(
        brightness=0.98,
        saturation=1.35,
        hue=-2,
        gamma=1.1,
        contrast=(2, 98),
        warmth=(255, 252, 248),
        channel_mix=(
            (1.0, 0.0, 0.02),
            (0.0, 1.05, 0.0),
            (0.02, 0.0, 1.08),
        ),
        sharpen=UnsharpMask(sigma=0.6, flat=0.9, jagged=2.2),
        blur=0.3,
    ),
    FilmStock.CLASSIC_NEG: FilmStockProfile(
        brightness=1.08,
        saturation=0.65,
        hue=12,
        gamma=1.4,
        contrast=(18, 88),
        warmth=(255, 248, 235),
        channel_mix=(
            (1.0, -0.05, 0.08),
            (0.05, 1.0, -0.03),
            (-0.02, 0.08, 1.0),
        ),
        sharpen=UnsharpMask(sigma=0.3, flat=0.4, jagged=1.2),
        blur=0.35,
    ),
    FilmStock.PORTRA_400: FilmStockProfile(
        brightness=1.03,
        saturation=0.92,
        hue=8,
        gamma=1.15,
        contrast=(6, 96),
        warmth=(255, 250, 242),
        channel_mix=(
            (1.0, 0.02, 0.01),
            (0.01, 1.0, 0.0),
            (0.02, 0.01, 0.98),
        ),
        sharpen=UnsharpMask(sigma=0.4, flat=0.6, jagged=1.6),
        blur=0.3,
    ),
    FilmStock.KODACHROME: FilmStockProfile(
        brightness=1.0,
        saturation=1.2,
        hue=-5,
        gamma=1.05,
        contrast=(3, 97),
        warmth=(255, 248, 240),
        channel_mix=(
            (1.05, 0.0, -0.02),
            (0.0, 1.02, 0.02),
            (0.05, 0.0, 1.08),
        ),
        sharpen=UnsharpMask(sigma=0.5, flat=0.8, jagged=2.0),
        blur=0.15,
    ),
})


def get_profile(stock: Optional[Union[str, FilmStock]]) -> FilmStockProfile:
    """Look up the profile for a film stock.

    Args:
        stock: Film stock identifier or FilmStock; unknown values fall back
            to classic_chrome

    Returns:
        FilmStockProfile for the resolved stock
    """
    return FILM_STOCK_PROFILES[FilmStock.parse(stock)]
