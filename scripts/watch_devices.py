"""
Diagnostic script for device filters.
Run this to see which identifier each connected device reports and whether
the saved filters would accept it. Nothing is restarted.

Expected behavior:
- Prints one line per device connected after the script starts
- Shows ACCEPT for devices matching a saved filter, SKIP otherwise
"""

import sys
import os
import logging
import time

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from packages.shared.store import ConfigStore
from packages.core.errors import SubscriptionError
from packages.core.monitor.device_notifier import default_notifier
from packages.core.monitor.device_watcher import DeviceWatcher
from packages.core.monitor.filter_engine import accepts, parse_filter_text
from packages.core.monitor.types import DeviceArrivalEvent

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)

def main():
    print("=" * 60)
    print("Device Filter Check")
    print("=" * 60)

    store = ConfigStore()
    patterns = parse_filter_text(store.load_filter_text())
    print(f"Settings: {store.path()}")
    if patterns:
        for p in patterns:
            print(f"  filter: {p}")
    else:
        print("  no filters: every device would trigger a restart")
    print()

    def on_event(event: DeviceArrivalEvent) -> None:
        verdict = "ACCEPT" if accepts(event.device_id, patterns,
                                      on_invalid=lambda p, e: print(f"  invalid pattern '{p}': {e}")) else "SKIP"
        print(f"[{event.at}] {verdict:6s} {event.description} ({event.device_id})")

    watcher = DeviceWatcher(default_notifier())
    try:
        watcher.start(on_event, on_error=lambda e: print(f"Notification channel failed: {e}"))
    except SubscriptionError as e:
        print(f"Could not subscribe to device events: {e}")
        return 1

    print("Waiting for devices (press Ctrl+C to stop)...")
    print("-" * 60)
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        print()
        print("Stopped by user")
    finally:
        watcher.stop()

    print("=" * 60)
    return 0

if __name__ == "__main__":
    sys.exit(main())
