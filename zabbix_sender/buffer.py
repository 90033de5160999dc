"""Metric buffer — ordered collection of metrics waiting to be sent."""

from zabbix_sender.models import Metric


class MetricBuffer:
    """Keeps metrics in insertion order, which is also transmission order.

    Not thread-safe: a buffer belongs to exactly one SenderClient.
    """

    def __init__(self):
        self._metrics: list[Metric] = []

    def append(self, metric: Metric) -> "MetricBuffer":
        self._metrics.append(metric)
        return self

    def snapshot(self) -> list[Metric]:
        """Return a copy of the pending metrics without touching the buffer."""
        return list(self._metrics)

    def clear(self):
        self._metrics.clear()

    @property
    def pending_count(self) -> int:
        return len(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)
