#!/usr/bin/env python3
"""
System health check - verifies the detector can run and notify.

Run this before enabling detection on a new machine, or when
notifications stop arriving.
"""
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import config_loader
from core.discord import get_discord_config
from core.thresholds import SensitivityMode, ThresholdSet


def check_disk_space(path: Path, min_gb: float = 0.1) -> Tuple[bool, str]:
    """Check if there's enough disk space for the log file."""
    stat = shutil.disk_usage(path)
    free_gb = stat.free / (1024 ** 3)

    if free_gb < min_gb:
        return False, f"Low disk space: {free_gb:.2f} GB free (need {min_gb} GB)"

    return True, f"{free_gb:.2f} GB free"


def check_audio_device(device: str) -> Tuple[bool, str]:
    """Check if ALSA capture devices are available."""
    if not device:
        return False, "audio.device not set"

    try:
        result = subprocess.run(
            ["arecord", "-l"],
            capture_output=True,
            text=True,
            timeout=5
        )
    except FileNotFoundError:
        return False, "arecord not found - install alsa-utils"
    except subprocess.TimeoutExpired:
        return False, "arecord command timed out"

    if result.returncode != 0:
        return False, f"arecord -l failed: {result.stderr.strip()}"

    if "card" not in result.stdout:
        return False, "No capture devices listed by 'arecord -l'"

    return True, f"Capture devices available (configured: {device})"


def check_credentials(discord_config: Dict[str, Any]) -> Tuple[bool, str]:
    """Check that a bot token and recipient are set. Validity is only known to Discord."""
    missing = []
    if not discord_config.get("bot_token"):
        missing.append("bot token (discord.bot_token or DISCORD_BOT_TOKEN)")
    if not discord_config.get("user_id"):
        missing.append("user id (discord.user_id or DISCORD_USER_ID)")

    if missing:
        return False, f"Missing {', '.join(missing)}"
    return True, f"Credentials set for user {discord_config['user_id']}"


def check_thresholds(config: Dict[str, Any]) -> Tuple[bool, str]:
    """Report the active threshold and warn about an unusual mode ordering."""
    detection = config["detection"]
    mode = SensitivityMode.parse(detection["sensitivity"])
    thresholds = ThresholdSet.from_dict(detection["thresholds"])

    summary = ", ".join(f"{name}={value:.1f}" for name, value in thresholds.as_dict().items())
    if not thresholds.sensitive <= thresholds.normal <= thresholds.sleeping:
        return True, f"{mode.value} active ({summary}); note: Sensitive is usually the lowest value"
    return True, f"{mode.value} active ({summary})"


def run_health_check(config_path: Optional[Path] = None) -> bool:
    """
    Run comprehensive health check.

    Returns:
        True if all checks pass, False otherwise
    """
    print("=" * 60)
    print("SOUND DETECTOR HEALTH CHECK")
    print("=" * 60)
    print()

    checks: List[Tuple[str, bool, str]] = []

    try:
        config = config_loader.load_config(config_path)
        discord_config = get_discord_config(config)
        checks.append(("Configuration", True, "Configuration valid"))
    except ValueError as e:
        config = None
        checks.append(("Configuration", False, f"Config error: {e}"))

    if config is not None:
        checks.append(("Thresholds", *check_thresholds(config)))
        checks.append(("Discord Credentials", *check_credentials(discord_config)))
        checks.append(("Audio System", *check_audio_device(config["audio"]["device"])))

    checks.append(("Disk Space", *check_disk_space(Path.cwd(), min_gb=0.1)))

    for name, ok, msg in checks:
        status = "✓" if ok else "✗"
        print(f"{status} {name}: {msg}")

    all_ok = all(ok for _, ok, _ in checks)

    print()
    print("=" * 60)

    if all_ok:
        print("✓ All checks passed - system ready")
    else:
        print("✗ Some checks failed - review issues above")
        print()
        print("Common fixes:")
        print("  - Credentials: export DISCORD_BOT_TOKEN and DISCORD_USER_ID")
        print("  - Audio issues: arecord -l, and add user to the 'audio' group")

    print("=" * 60)

    return all_ok


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="System health check")
    parser.add_argument("--config", type=Path, help="Path to config.json")

    args = parser.parse_args()
    success = run_health_check(args.config)
    sys.exit(0 if success else 1)
