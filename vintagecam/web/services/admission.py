"""Memory-pressure admission gate for processing requests."""

import logging
from typing import Callable, Dict, Optional

import psutil

from .exceptions import CapacityError

logger = logging.getLogger(__name__)


def system_memory_fraction() -> float:
    """Return the used fraction of system memory (0.0 to 1.0)."""
    return psutil.virtual_memory().percent / 100.0


class MemoryGate:
    """Rejects new processing work while memory usage is too high.

    Attributes:
        threshold: Used-memory fraction at or above which work is rejected
        retry_after: Seconds clients are told to wait
    """

    def __init__(
        self,
        threshold: float = 0.95,
        retry_after: int = 30,
        probe: Optional[Callable[[], float]] = None
    ) -> None:
        """Initialize memory gate.

        Args:
            threshold: Used-memory fraction that trips the gate
            retry_after: Retry hint in seconds
            probe: Returns the used-memory fraction (psutil by default)
        """
        self.threshold = threshold
        self.retry_after = retry_after
        self._probe = probe or system_memory_fraction

    def under_pressure(self) -> bool:
        return self._probe() >= self.threshold

    def check(self) -> None:
        """Raise if the server should not accept processing work.

        Raises:
            CapacityError: If memory usage is at or above the threshold
        """
        if self.under_pressure():
            logger.warning(
                f"Rejecting processing request: memory usage at or above "
                f"{self.threshold:.1%}"
            )
            raise CapacityError(
                "Server is under heavy load. Please try again later.",
                retry_after=self.retry_after
            )

    def snapshot(self) -> Dict[str, float]:
        """Memory figures for the health endpoint."""
        memory = psutil.virtual_memory()
        process = psutil.Process()
        return {
            "used_fraction": round(self._probe(), 4),
            "threshold": self.threshold,
            "total_mb": round(memory.total / (1024 * 1024), 1),
            "available_mb": round(memory.available / (1024 * 1024), 1),
            "process_rss_mb": round(process.memory_info().rss / (1024 * 1024), 1),
        }
