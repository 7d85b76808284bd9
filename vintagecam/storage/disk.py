"""Local-disk metadata backend."""

import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional, Union

from vintagecam.storage.base import MetadataBackend
from vintagecam.storage.exceptions import StorageError

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_key(key: str) -> str:
    """Map a key to a safe filename stem.

    Characters outside ``[A-Za-z0-9_-]`` become underscores, so ``image:abc``
    and ``image_abc`` share a file.

    Examples:
        >>> sanitize_key("image:1f2e")
        'image_1f2e'
    """
    return _UNSAFE_KEY_CHARS.sub("_", key)


class DiskBackend(MetadataBackend):
    """Metadata backend storing one JSON file per key.

    Each file holds ``{"data": <text>, "expiry": <epoch seconds>}``; expiry is
    omitted when no TTL was given. Expired entries are removed lazily when
    they are read.

    Attributes:
        directory: Directory holding the entry files
    """

    name = "file"

    def __init__(
        self,
        directory: Union[str, Path],
        clock: Callable[[], float] = time.time
    ) -> None:
        """Initialize disk backend.

        Args:
            directory: Directory for entry files (created if missing)
            clock: Returns the current time in epoch seconds
        """
        self.directory = Path(directory).expanduser()
        self._clock = clock
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Disk metadata backend initialized: {self.directory}")

    def path_for(self, key: str) -> Path:
        """Return the entry file path for a key."""
        return self.directory / f"{sanitize_key(key)}.json"

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        entry = {"data": value}
        if ttl_seconds:
            entry["expiry"] = self._clock() + ttl_seconds

        path = self.path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=".", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entry, f)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write metadata entry {key}: {e}") from e
        return True

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read metadata entry {key}: {e}") from e

        if not isinstance(entry, dict) or "data" not in entry:
            raise StorageError(f"Corrupt metadata entry {key}: {path}")

        expiry = entry.get("expiry")
        if expiry is not None and self._clock() > expiry:
            logger.debug(f"Metadata entry expired: {key}")
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove expired entry {path}: {e}")
            return None

        return entry["data"]
