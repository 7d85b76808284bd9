"""Backend selection between the network cache and local disk.

The store always starts serving from disk. A background attempt promotes it
to the network backend once that backend answers; any later network failure
demotes it back to disk for the rest of the process lifetime.
"""

import logging
import threading
from enum import Enum
from typing import Any, Dict, Optional

from vintagecam.storage.base import MetadataBackend
from vintagecam.storage.disk import DiskBackend
from vintagecam.storage.exceptions import StorageError

logger = logging.getLogger(__name__)

CONNECTION_TEST_KEY = "test:connection"
CONNECTION_TEST_TTL = 60


class BackendState(str, Enum):
    """Which backend is serving requests."""
    UNINITIALIZED = "uninitialized"
    NETWORK_ACTIVE = "network_active"
    DISK_ACTIVE = "disk_active"


class MetadataStore:
    """Metadata store with automatic network-to-disk fallback.

    Attributes:
        disk: Local disk backend, always available
        network: Optional network backend (Redis)
        connect_timeout: Upper bound for the initial network attempt (seconds)
    """

    def __init__(
        self,
        disk: DiskBackend,
        network: Optional[MetadataBackend] = None,
        connect_timeout: float = 5.0
    ) -> None:
        """Initialize the store.

        Args:
            disk: Disk backend used until (and after) the network is usable
            network: Network backend to try at startup; None means disk only
            connect_timeout: Seconds to wait for the network attempt
        """
        self.disk = disk
        self.network = network
        self.connect_timeout = connect_timeout

        self._lock = threading.Lock()
        self._state = BackendState.UNINITIALIZED
        self._active: MetadataBackend = disk
        self._fallen_back = False
        self._last_error: Optional[str] = None
        self._ready = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> BackendState:
        with self._lock:
            return self._state

    @property
    def active_backend(self) -> MetadataBackend:
        with self._lock:
            return self._active

    def start(self, background: bool = True) -> None:
        """Begin serving from disk and attempt the network backend.

        Args:
            background: Run the network attempt on a daemon thread. When False
                the attempt runs inline before returning.
        """
        with self._lock:
            if self._state is not BackendState.UNINITIALIZED:
                return
            self._state = BackendState.DISK_ACTIVE
            self._active = self.disk

        if self.network is None:
            logger.info("No network metadata backend configured, using disk storage")
            self._ready.set()
            return

        logger.info(f"Using disk storage while connecting to {self.network.name}")
        if background:
            self._thread = threading.Thread(
                target=self._attempt_network,
                name="metadata-store-connect",
                daemon=True
            )
            self._thread.start()
        else:
            self._attempt_network()

    def _attempt_network(self) -> None:
        try:
            self.network.connect()
            self.network.set(CONNECTION_TEST_KEY, "connected", CONNECTION_TEST_TTL)
        except StorageError as e:
            with self._lock:
                self._last_error = str(e)
            logger.warning(
                f"{self.network.name} unavailable, continuing with disk storage: {e}"
            )
        else:
            with self._lock:
                if not self._fallen_back:
                    self._active = self.network
                    self._state = BackendState.NETWORK_ACTIVE
                    promoted = True
                else:
                    promoted = False
            if promoted:
                logger.info(f"Metadata storage switched to {self.network.name}")
        finally:
            self._ready.set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the startup network attempt has finished.

        Args:
            timeout: Seconds to wait; defaults to connect_timeout

        Returns:
            True if the attempt finished within the timeout
        """
        if timeout is None:
            timeout = self.connect_timeout
        return self._ready.wait(timeout)

    def _fall_back(self, error: Exception) -> None:
        with self._lock:
            if self._active is self.disk:
                return
            self._active = self.disk
            self._state = BackendState.DISK_ACTIVE
            self._fallen_back = True
            self._last_error = str(error)
        logger.error(f"Network metadata backend failed, falling back to disk: {error}")

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        """Store a value on the active backend.

        Raises:
            StorageError: If the disk backend also fails
        """
        backend = self.active_backend
        if backend is self.disk:
            return self.disk.set(key, value, ttl_seconds)
        try:
            return backend.set(key, value, ttl_seconds)
        except StorageError as e:
            self._fall_back(e)
            return self.disk.set(key, value, ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        """Fetch a value from the active backend.

        Raises:
            StorageError: If the disk backend also fails
        """
        backend = self.active_backend
        if backend is self.disk:
            return self.disk.get(key)
        try:
            return backend.get(key)
        except StorageError as e:
            self._fall_back(e)
            return self.disk.get(key)

    def status(self) -> Dict[str, Any]:
        """Report the active backend and fallback state."""
        with self._lock:
            return {
                "backend": self._active.name,
                "state": self._state.value,
                "network_configured": self.network is not None,
                "fallen_back": self._fallen_back,
                "ready": self._ready.is_set(),
                "last_error": self._last_error,
            }

    def close(self) -> None:
        """Close both backends."""
        if self.network is not None:
            self.network.close()
        self.disk.close()
        logger.debug("Metadata store closed")
