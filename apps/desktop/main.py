import logging
import signal
import sys
import threading

from packages.shared.paths import ensure_app_dirs
from packages.shared.store import ConfigStore
from packages.core.autostart import default_autostart
from packages.core.errors import ConfigurationError, SubscriptionError
from packages.core.logging_ import setup_logging
from packages.core.monitor.device_notifier import default_notifier
from packages.core.monitor.device_watcher import DeviceWatcher
from packages.core.monitor.process_supervisor import PsutilProcessSupervisor
from packages.core.monitor.restart_orchestrator import RestartOrchestrator
from packages.core.monitor.usb_monitor import UsbMonitorController
from packages.core.notify.status import FanOutStatusSink, LoggingStatusSink, StatusSink

log = logging.getLogger(__name__)


def build_sink() -> StatusSink:
    sinks = [LoggingStatusSink()]
    if sys.platform == "win32":
        try:
            from packages.core.notify.notifier import ToastStatusSink
            sinks.append(ToastStatusSink())
        except Exception:
            log.exception("Toast notifications unavailable")
    return FanOutStatusSink(sinks)


def build_controller(store: ConfigStore, sink: StatusSink) -> UsbMonitorController:
    return UsbMonitorController(
        store=store,
        watcher=DeviceWatcher(default_notifier()),
        orchestrator=RestartOrchestrator(PsutilProcessSupervisor(), sink=sink),
        sink=sink,
        autostart=default_autostart(),
    )


def main() -> int:
    ensure_app_dirs()
    setup_logging()

    store = ConfigStore()
    sink = build_sink()
    controller = build_controller(store, sink)
    log.info(f"Settings file: {store.path()}")

    controller.sync_auto_start()

    # Monitoring starts with the application
    try:
        controller.start()
    except (ConfigurationError, SubscriptionError) as e:
        log.error(f"Could not start monitoring: {e}")
        controller.close()
        return 1

    done = threading.Event()

    def signal_handler(sig, frame):
        log.info("Received interrupt signal, shutting down...")
        done.set()

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, signal_handler)

    # Short waits keep the main thread responsive to signals on Windows
    while not done.wait(0.5):
        if not controller.is_monitoring:
            log.error("Monitoring stopped unexpectedly")
            controller.close()
            return 1

    controller.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
