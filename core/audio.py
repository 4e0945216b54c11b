"""
Audio level source.

Single Responsibility: Provide the latest ambient level in dBFS on demand.
"""
import subprocess
import threading
import time
from typing import Optional, Protocol

import numpy as np

from logger import get_logger
from utils import INT16_FULL_SCALE, NO_DATA_DB, rms_dbfs

log = get_logger(__name__)


class SignalSource(Protocol):
    """What the detection loop needs from an audio capture device."""

    def start(self) -> None:
        """Acquire the capture device. Raises on failure."""

    def stop(self) -> None:
        """Release the capture device."""

    def current_level(self) -> float:
        """Latest level in dB, or NO_DATA_DB when nothing has been read."""


class ArecordLevelSource:
    """
    Meters audio captured by ALSA arecord.

    A reader thread consumes raw PCM chunks and keeps only the RMS level of
    the most recent one.
    """

    BYTES_PER_SAMPLE = 2
    STARTUP_GRACE_SEC = 0.1

    def __init__(self, config: dict):
        """
        Initialize level source.

        Args:
            config: Configuration dictionary with audio settings
        """
        self.audio_config = config["audio"]
        self.sample_rate = self.audio_config["sample_rate"]
        self.channels = self.audio_config["channels"]
        self.chunk_duration = self.audio_config["chunk_duration"]
        self.chunk_samples = int(self.sample_rate * self.chunk_duration)
        self.chunk_bytes = self.chunk_samples * self.BYTES_PER_SAMPLE * self.channels

        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._level_db = NO_DATA_DB

    def _command(self) -> list:
        return [
            "arecord",
            "-D", self.audio_config["device"],
            "-f", self.audio_config["sample_format"],
            "-r", str(self.sample_rate),
            "-c", str(self.channels),
            "-q",
            "-t", "raw"
        ]

    def start(self) -> None:
        """Start arecord and the reader thread."""
        if self._process is not None:
            raise RuntimeError("Audio capture already started")

        device = self.audio_config["device"]
        if not device or not isinstance(device, str):
            raise ValueError(
                f"Invalid audio device configuration: {device}. "
                f"Expected string like 'plughw:CARD=Device,DEV=0'"
            )

        cmd = self._command()
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError:
            raise FileNotFoundError(
                "arecord command not found. Install alsa-utils: "
                "sudo apt-get install alsa-utils"
            )
        except OSError as e:
            raise RuntimeError(
                f"Failed to start arecord process. Command: {' '.join(cmd)}. Error: {e}"
            )

        # Give process a moment to fail on a bad device
        time.sleep(self.STARTUP_GRACE_SEC)

        if process.poll() is not None:
            stderr_msg = ""
            if process.stderr:
                stderr_msg = process.stderr.read().decode(errors="ignore").strip()
            raise RuntimeError(
                f"arecord failed to start. Device: {device}. Error: {stderr_msg}.{self._hint(stderr_msg)}"
            )

        self._process = process
        with self._lock:
            self._level_db = NO_DATA_DB
        self._reader = threading.Thread(
            target=self._read_loop,
            args=(process,),
            name="arecord-reader",
            daemon=True
        )
        self._reader.start()
        log.info(f"Audio capture started on {device}")

    def _hint(self, stderr_msg: str) -> str:
        error_hints = {
            "Device or resource busy": "Audio device is in use by another process: 'pkill arecord'",
            "No such file or directory": f"Audio device '{self.audio_config['device']}' not found. Check with 'arecord -l'",
            "Permission denied": "No permission to access audio device. Add user to audio group: 'sudo usermod -a -G audio $USER'",
            "Invalid argument": f"Invalid audio device or format. Format: {self.audio_config['sample_format']}"
        }
        for key, msg in error_hints.items():
            if key in stderr_msg:
                return f" Hint: {msg}"
        return ""

    def _read_loop(self, process: subprocess.Popen) -> None:
        while True:
            data = process.stdout.read(self.chunk_bytes) if process.stdout else b""
            if not data or len(data) < self.chunk_bytes:
                break
            level = self.level_from_bytes(data)
            with self._lock:
                self._level_db = level
        log.debug("Audio stream ended")

    @staticmethod
    def level_from_bytes(data: bytes) -> float:
        """RMS level in dBFS of little-endian int16 PCM."""
        samples = np.frombuffer(data, dtype="<i2")
        if samples.size == 0:
            return NO_DATA_DB
        float_samples = samples.astype(np.float32) / INT16_FULL_SCALE
        # Remove DC offset so a biased microphone does not read as noise
        float_samples = float_samples - float(np.mean(float_samples))
        return rms_dbfs(float_samples)

    def current_level(self) -> float:
        with self._lock:
            return self._level_db

    def is_running(self) -> bool:
        """Check if capture process is still running."""
        if self._process is None:
            return False
        return self._process.poll() is None

    def stop(self) -> None:
        """Stop arecord; no-op if not started."""
        if self._process is None:
            return

        process = self._process
        self._process = None
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join(timeout=1.0)
        self._reader = None
        with self._lock:
            self._level_db = NO_DATA_DB
        log.info("Audio capture stopped")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
