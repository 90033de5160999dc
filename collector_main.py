"""Mock collector — accepts sender-data requests locally and answers success."""

import logging
import os
import signal
import threading

from zabbix_sender.collector import MockCollector


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    host = os.environ.get("COLLECTOR_HOST", "0.0.0.0")
    port = int(os.environ.get("COLLECTOR_PORT", "10051"))
    shutdown = threading.Event()

    collector = MockCollector(host, port, shutdown)

    def handle_signal(signum, frame):
        logging.info("Received signal %d, shutting down...", signum)
        collector.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        collector.start()
    except KeyboardInterrupt:
        pass
    finally:
        collector.stop()
        total = sum(len(metrics) for metrics in collector.requests)
        print("\n--- Collector Statistics ---")
        print(f"  requests: {len(collector.requests)}")
        print(f"  metrics: {total}")


if __name__ == "__main__":
    main()
