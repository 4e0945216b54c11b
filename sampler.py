import time

from core import ArecordLevelSource
from utils import is_no_data


def live_sample(config, interval_sec=0.5):
    print("\nLive sampling (Ctrl+C to stop)...")
    source = ArecordLevelSource(config)
    try:
        with source:
            while True:
                time.sleep(interval_sec)
                level = source.current_level()
                if is_no_data(level):
                    print("level:    n/a")
                else:
                    print(f"level: {level:6.1f} dBFS")
    except KeyboardInterrupt:
        print("\nStopped.\n")
