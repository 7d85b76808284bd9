"""Processing options and their request-body parsing."""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Optional

from vintagecam.film.profiles import FilmStock
from vintagecam.processing.crop import DEFAULT_ASPECT_RATIO, CropRequest
from vintagecam.processing.effects import DEFAULT_GRAIN_SIZE, GRAIN_SIGMAS

logger = logging.getLogger(__name__)

DEFAULT_GRAIN_INTENSITY = 0.15
DEFAULT_VIGNETTE_INTENSITY = 0.3
MIN_GRAIN_INTENSITY = 0.01


@dataclass(frozen=True)
class ProcessingOptions:
    """Options for one processing call.

    Attributes:
        aspect_ratio: Named aspect ratio for centered cropping
        film_stock: Film stock whose profile drives the color pipeline
        crop: Explicit crop rectangle; when set, aspect_ratio is ignored
        add_grain: Whether to composite film grain
        grain_intensity: Grain strength in (0, 1]
        grain_size: fine, medium or coarse
        add_vignette: Whether to darken the edges
        vignette_intensity: Vignette strength in [0, 1]
    """
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    film_stock: FilmStock = FilmStock.CLASSIC_CHROME
    crop: Optional[CropRequest] = None
    add_grain: bool = False
    grain_intensity: float = DEFAULT_GRAIN_INTENSITY
    grain_size: str = DEFAULT_GRAIN_SIZE
    add_vignette: bool = False
    vignette_intensity: float = DEFAULT_VIGNETTE_INTENSITY

    @classmethod
    def from_request(
        cls,
        data: Optional[Dict[str, Any]],
        require_crop: bool = False
    ) -> "ProcessingOptions":
        """Build options from a camelCase request body.

        Args:
            data: Request body (aspectRatio, filmStock, cropData, addGrain,
                grainIntensity, grainSize, addVignette, vignetteIntensity)
            require_crop: If True, cropData must be present

        Returns:
            ProcessingOptions

        Raises:
            ValueError: If the body or any field is malformed
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")

        crop_data = data.get("cropData")
        if crop_data is None and require_crop:
            raise ValueError("Crop data is required")
        crop = _parse_crop(crop_data) if crop_data is not None else None

        filter_options = data.get("filterOptions") or {}
        film_stock = data.get("filmStock")
        if not film_stock and isinstance(filter_options, dict):
            film_stock = filter_options.get("filmStock")

        aspect_ratio = data.get("aspectRatio") or DEFAULT_ASPECT_RATIO
        if not isinstance(aspect_ratio, str):
            raise ValueError("aspectRatio must be a string")

        grain_size = data.get("grainSize") or DEFAULT_GRAIN_SIZE
        if not isinstance(grain_size, str):
            raise ValueError("grainSize must be a string")
        if grain_size not in GRAIN_SIGMAS:
            logger.debug(f"Unknown grain size {grain_size!r}, using {DEFAULT_GRAIN_SIZE}")
            grain_size = DEFAULT_GRAIN_SIZE

        grain_intensity = _parse_number(
            data, "grainIntensity", DEFAULT_GRAIN_INTENSITY
        )
        vignette_intensity = _parse_number(
            data, "vignetteIntensity", DEFAULT_VIGNETTE_INTENSITY
        )

        return cls(
            aspect_ratio=aspect_ratio,
            film_stock=FilmStock.parse(film_stock),
            crop=crop,
            add_grain=_parse_flag(data, "addGrain"),
            grain_intensity=min(1.0, max(MIN_GRAIN_INTENSITY, grain_intensity)),
            grain_size=grain_size,
            add_vignette=_parse_flag(data, "addVignette"),
            vignette_intensity=min(1.0, max(0.0, vignette_intensity)),
        )

    def describe(self) -> Dict[str, Any]:
        """Return a JSON-friendly summary for logging and records."""
        summary = {
            "filmStock": self.film_stock.value,
            "addGrain": self.add_grain,
            "addVignette": self.add_vignette,
        }
        if self.crop is not None:
            summary["cropData"] = self.crop.to_dict()
        else:
            summary["aspectRatio"] = self.aspect_ratio
        return summary


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _parse_number(data: Dict[str, Any], key: str, default: float) -> float:
    value = data.get(key)
    if value is None:
        return default
    if not _is_number(value):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _parse_flag(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _parse_crop(crop_data: Any) -> CropRequest:
    if not isinstance(crop_data, dict):
        raise ValueError("Invalid crop data. Must be an object")

    missing = [key for key in ("x", "y", "width", "height") if key not in crop_data]
    if missing or not all(_is_number(crop_data[key]) for key in ("x", "y", "width", "height")):
        raise ValueError(
            "Invalid crop data. Must include x, y, width, and height as positive numbers"
        )
    if crop_data["width"] <= 0 or crop_data["height"] <= 0:
        raise ValueError(
            "Invalid crop data. Must include x, y, width, and height as positive numbers"
        )

    return CropRequest(
        x=int(crop_data["x"]),
        y=int(crop_data["y"]),
        width=int(crop_data["width"]),
        height=int(crop_data["height"]),
    )
