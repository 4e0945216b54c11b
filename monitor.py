#!/usr/bin/env python3
"""
Sound detector monitor - wires the components together and runs until Ctrl+C.
"""
import time
from pathlib import Path
from typing import Any, Dict, Optional

import config_loader
from core import (
    ArecordLevelSource,
    DetectorSettings,
    NotificationDispatcher,
    SensitivityMode,
    SoundDetector,
    StatusReporter,
    get_discord_config,
)
from logger import get_logger, setup_logging

log = get_logger(__name__)


def build_detector(config: Dict[str, Any], source=None) -> SoundDetector:
    """
    Create the detector and its collaborators from configuration.

    Args:
        config: Loaded configuration
        source: Signal source; defaults to arecord capture

    Returns:
        Disabled SoundDetector
    """
    discord_config = get_discord_config(config)
    settings = DetectorSettings.from_config(config, discord_config)
    status = StatusReporter()
    dispatcher = NotificationDispatcher.from_config(settings, status, discord_config)
    return SoundDetector(
        settings,
        source if source is not None else ArecordLevelSource(config),
        dispatcher,
        status,
        interval_sec=config["detection"]["interval_sec"]
    )


def run_monitor(
    config_path: Optional[Path] = None,
    debug: bool = False,
    sensitivity: Optional[str] = None
) -> None:
    """
    Run the sound detector until interrupted.

    Args:
        config_path: Optional path to config.json (defaults to ./config.json)
        debug: If True, enable verbose debug output
        sensitivity: Overrides detection.sensitivity from the config
    """
    try:
        config = config_loader.load_config(config_path)
    except ValueError as e:
        print(f"[ERROR] Failed to load configuration: {e}")
        print("  Check that config.json exists and is valid JSON")
        raise

    logging_config = config["logging"]
    setup_logging(logging_config.get("log_file"), logging_config.get("level", "INFO"), debug=debug)

    detector = build_detector(config)
    if sensitivity:
        detector.settings.mode = SensitivityMode.parse(sensitivity)

    _print_startup_info(config, detector)

    if not detector.settings.credentials.is_complete():
        log.warning("Discord credentials incomplete; detections will not be delivered")

    if not detector.enable():
        print(f"[ERROR] {detector.status.current()}")
        print("\nTroubleshooting:")
        print("  1. Check audio device: arecord -l")
        print("  2. Verify device in config.json matches hardware")
        print("  3. Check permissions: groups (should include 'audio')")
        print("  4. Stop other processes using audio: pkill arecord")
        raise RuntimeError("Audio capture could not be started")

    last_status = None
    try:
        while detector.is_enabled:
            current = detector.status.current()
            if current != last_status:
                print(f"{time.strftime('%Y-%m-%dT%H:%M:%S')} | Status: {current}", flush=True)
                last_status = current
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\n[INFO] Stopping monitor (Ctrl+C received)...")
    finally:
        detector.disable()
        # Flow threads are not daemons; in-flight deliveries finish before exit
        detector.dispatcher.shutdown(wait=False)
        print("[INFO] Monitor stopped and cleaned up.")


def _print_startup_info(config: Dict[str, Any], detector: SoundDetector) -> None:
    """Print startup information."""
    audio = config["audio"]
    mode, threshold = detector.settings.current_threshold()

    print("=" * 60)
    print("SOUND DETECTOR - Starting Monitor")
    print("=" * 60)
    print(f"Audio Device: {audio['device']}")
    print(f"Sample Rate: {audio['sample_rate']} Hz")
    print(f"Check Interval: {detector.interval_sec:g}s")
    print(f"Sensitivity: {mode.value} ({threshold:.1f} dB)")
    for name, value in detector.settings.thresholds.as_dict().items():
        print(f"  {name}: {value:.1f} dB")
    print(f"Discord API: {detector.dispatcher.api_base}")
    print("=" * 60)
    print("Press Ctrl+C to stop.\n")
