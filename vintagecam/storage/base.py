"""Abstract base class for metadata backends."""

from abc import ABC, abstractmethod
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class MetadataBackend(ABC):
    """Abstract base class for key/value metadata backends.

    Values are opaque text (JSON in practice). A backend that honors
    ``ttl_seconds`` must report an entry as absent once its expiry has passed.
    Any backend failure is raised as StorageError.
    """

    name: str = "backend"

    def connect(self) -> None:
        """Establish the backend connection.

        Raises:
            StorageConnectionError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        """Store a value.

        Args:
            key: Entry key
            value: Text value
            ttl_seconds: Optional time to live in seconds

        Returns:
            True on success

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Fetch a value.

        Args:
            key: Entry key

        Returns:
            Stored text, or None if absent or expired

        Raises:
            StorageError: If the read fails
        """
        pass

    def close(self) -> None:
        """Release backend resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
