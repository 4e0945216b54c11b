"""
Status reporting.

Single Responsibility: Hold the latest human-readable outcome for display.
"""
import threading
import time
from typing import Optional

from logger import get_logger

log = get_logger(__name__)

STATUS_DISABLED = "Sound detection disabled"
STATUS_NO_DETECTION = "No significant sound detected"
STATUS_DELIVERED = "Message sent successfully"


def detection_status(decibel_level: float) -> str:
    return f"Sound detected: {decibel_level:.1f} dB"


class StatusReporter:
    """
    Latest status message, shared between writers and a display surface.

    Every write overwrites the previous message; no history is kept, so
    concurrent writers race and the last write wins.
    """

    def __init__(self, initial: str = STATUS_DISABLED):
        self._lock = threading.Lock()
        self._message = initial
        self._updated_at: Optional[float] = None

    def set(self, message: str) -> None:
        with self._lock:
            self._message = message
            self._updated_at = time.time()
        log.debug(f"Status: {message}")

    def current(self) -> str:
        with self._lock:
            return self._message

    @property
    def updated_at(self) -> Optional[float]:
        """Unix timestamp of the last write, None before the first one."""
        with self._lock:
            return self._updated_at
