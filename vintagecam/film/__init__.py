"""Film stock emulation profiles."""

from vintagecam.film.profiles import (
    FILM_STOCK_PROFILES,
    FilmStock,
    FilmStockProfile,
    UnsharpMask,
    get_profile,
)

__all__ = [
    "FILM_STOCK_PROFILES",
    "FilmStock",
    "FilmStockProfile",
    "UnsharpMask",
    "get_profile",
]
