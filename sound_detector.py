#!/usr/bin/env python3

import argparse
import sys
from pathlib import Path

import config_loader
import health_check
import monitor
import sampler
from core import (
    DetectorSettings,
    NotificationDispatcher,
    StatusReporter,
    get_discord_config,
)
from logger import setup_logging

MENU = """
Sound Detector – Main Menu
1) Run sound detector
2) Take a sample (live level only)
3) Health check
4) Send a test notification
5) Exit
"""


def notify_test(config_path=None, level=0.0, debug=False) -> bool:
    """Deliver one notification synchronously and print the outcome."""
    config = config_loader.load_config(config_path)
    setup_logging(level="INFO", debug=debug)
    discord_config = get_discord_config(config)
    settings = DetectorSettings.from_config(config, discord_config)
    status = StatusReporter()
    dispatcher = NotificationDispatcher.from_config(settings, status, discord_config)
    try:
        delivered = dispatcher.deliver(level)
    finally:
        dispatcher.shutdown()
    print(f"Status: {status.current()}")
    return delivered


def main():
    parser = argparse.ArgumentParser(
        description="Sound Detector - notify a Discord user when it gets loud",
        epilog="""
Examples:
  python3 sound_detector.py monitor                       # Start detection
  python3 sound_detector.py monitor --sensitivity Sleeping
  python3 sound_detector.py monitor --debug               # Start with debug logging
  python3 sound_detector.py notify-test --level -12.5     # Send one DM now
  python3 sound_detector.py                               # Interactive menu
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("mode", nargs="?", help="Mode: monitor, sample, check, notify-test")
    parser.add_argument("--config", type=Path, help="Path to config.json file")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode (verbose logging)")
    parser.add_argument("--sensitivity", help="Sensitive, Normal or Sleeping (overrides config)")
    parser.add_argument("--level", type=float, default=0.0, help="Decibel value for notify-test")

    args = parser.parse_args()

    # If an argument is given, skip the menu and run directly
    if args.mode:
        mode = args.mode.lower()

        if mode == "monitor":
            monitor.run_monitor(args.config, debug=args.debug, sensitivity=args.sensitivity)
        elif mode == "sample":
            sampler.live_sample(config_loader.load_config(args.config))
        elif mode == "check":
            sys.exit(0 if health_check.run_health_check(args.config) else 1)
        elif mode == "notify-test":
            sys.exit(0 if notify_test(args.config, args.level, debug=args.debug) else 1)
        else:
            print(f"Unknown mode: {mode}")
            sys.exit(2)
        return

    # Interactive menu mode
    while True:
        print(MENU)
        choice = input("Choose an option: ").strip()

        if choice == "1":
            monitor.run_monitor(args.config, debug=args.debug)
        elif choice == "2":
            sampler.live_sample(config_loader.load_config(args.config))
        elif choice == "3":
            health_check.run_health_check(args.config)
        elif choice == "4":
            notify_test(args.config)
        elif choice == "5":
            print("Goodbye.")
            break
        else:
            print("Invalid option.\n")


if __name__ == "__main__":
    main()
