"""
Threshold detection loop.

Single Responsibility: Poll the signal source on a fixed interval and
hand detections to the dispatcher.
"""
import threading
import time
from dataclasses import dataclass
from typing import Optional

from logger import get_logger
from utils import is_no_data

from .audio import SignalSource
from .settings import DetectorSettings
from .status import (
    STATUS_DISABLED,
    STATUS_NO_DETECTION,
    StatusReporter,
    detection_status,
)
from .thresholds import SensitivityMode

log = get_logger(__name__)

# Seconds between two samples while enabled
DEFAULT_INTERVAL_SEC = 3.0


@dataclass(frozen=True)
class DetectionEvent:
    """A reading that exceeded the active threshold."""
    decibel_level: float
    mode: SensitivityMode
    threshold: float
    detected_at: float  # Unix timestamp


class SoundDetector:
    """
    Enable/disable state machine around a sampling thread.

    Disabled (initial) -> enable() -> Enabled -> disable() -> Disabled.
    Both transitions are idempotent. While enabled a single worker thread
    calls tick() every interval_sec; ticks never change enablement.
    """

    def __init__(
        self,
        settings: DetectorSettings,
        source: SignalSource,
        dispatcher,
        status: StatusReporter,
        interval_sec: float = DEFAULT_INTERVAL_SEC
    ):
        """
        Initialize detector.

        Args:
            settings: Shared mode/threshold settings, read on every tick
            source: Signal source acquired on enable and released on disable
            dispatcher: Object with notify(decibel_level); must not block
            status: Status reporter
            interval_sec: Sampling period, fixed for the detector's lifetime
        """
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.settings = settings
        self.source = source
        self.dispatcher = dispatcher
        self.status = status
        self.interval_sec = interval_sec

        # Serializes enable/disable; _lock only guards the flag
        self._transition = threading.Lock()
        self._lock = threading.Lock()
        self._enabled = False
        self._stop_event: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None

    @property
    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def set_enabled(self, enabled: bool) -> bool:
        """Operator toggle. Returns the resulting enablement."""
        if enabled:
            return self.enable()
        self.disable()
        return False

    def enable(self) -> bool:
        """
        Acquire the signal source and start sampling.

        Returns:
            True if detection is running, False if the source failed to start
        """
        with self._transition:
            if self.is_enabled:
                return True

            try:
                self.source.start()
            except Exception as e:
                log.error(f"Error setting up audio capture: {e}")
                self.status.set(f"Error setting up audio capture: {e}")
                return False

            stop_event = threading.Event()
            worker = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="sound-detector",
                daemon=True
            )
            with self._lock:
                self._stop_event = stop_event
                self._worker = worker
                self._enabled = True
            worker.start()

        log.info(f"Sound detection enabled (every {self.interval_sec:g}s)")
        return True

    def disable(self) -> None:
        """Stop sampling and release the signal source. In-flight notifications continue."""
        with self._transition:
            with self._lock:
                if not self._enabled:
                    return
                self._enabled = False
                stop_event, worker = self._stop_event, self._worker
                self._stop_event = None
                self._worker = None

            stop_event.set()
            if worker is not threading.current_thread():
                worker.join()

            try:
                self.source.stop()
            except Exception:
                log.exception("Error releasing audio capture")
            self.status.set(STATUS_DISABLED)
        log.info("Sound detection disabled")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_sec):
            try:
                self.tick()
            except Exception as e:
                log.exception("Error reading audio level")
                self.status.set(f"Error reading audio level: {e}")

    def tick(self) -> Optional[DetectionEvent]:
        """
        Take one sample and compare it with the active threshold.

        Returns:
            DetectionEvent if the sample exceeded the threshold, None otherwise
        """
        level = self.source.current_level()
        if is_no_data(level):
            self.status.set(STATUS_NO_DETECTION)
            return None

        mode, threshold = self.settings.current_threshold()
        if level > threshold:
            event = DetectionEvent(
                decibel_level=level,
                mode=mode,
                threshold=threshold,
                detected_at=time.time()
            )
            log.info(f"Sound detected: {level:.1f} dB > {threshold:.1f} dB ({mode.value})")
            self.status.set(detection_status(level))
            self.dispatcher.notify(level)
            return event

        log.debug(f"Level {level:.1f} dB <= {threshold:.1f} dB ({mode.value})")
        self.status.set(STATUS_NO_DETECTION)
        return None
