"""Python client for the vintagecam web API."""

from vintagecam.client.client import VintageCamClient
from vintagecam.client.exceptions import (
    ClientError,
    ClientAPIError,
    ClientNotFoundError,
    ClientCapacityError,
)

__all__ = [
    "VintageCamClient",
    "ClientError",
    "ClientAPIError",
    "ClientNotFoundError",
    "ClientCapacityError",
]
