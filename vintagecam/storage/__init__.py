"""Expiring metadata storage with Redis and local-disk backends."""

from vintagecam.storage.base import MetadataBackend
from vintagecam.storage.disk import DiskBackend, sanitize_key
from vintagecam.storage.exceptions import StorageConnectionError, StorageError
from vintagecam.storage.models import ImageRecord, ProcessedImageRecord
from vintagecam.storage.redis_backend import RedisBackend
from vintagecam.storage.selector import BackendState, MetadataStore

__all__ = [
    "MetadataBackend",
    "DiskBackend",
    "RedisBackend",
    "MetadataStore",
    "BackendState",
    "ImageRecord",
    "ProcessedImageRecord",
    "StorageError",
    "StorageConnectionError",
    "sanitize_key",
]
