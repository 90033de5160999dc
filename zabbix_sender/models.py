"""Metric model with factory and wire-dict conversion."""

import math
from dataclasses import dataclass
from typing import Optional, Union

MetricValue = Union[str, int, float]


@dataclass(frozen=True)
class Metric:
    host: str
    key: str
    value: MetricValue
    clock: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.host, str) or not self.host:
            raise ValueError(f"host must be a non-empty string, got {self.host!r}")
        if not isinstance(self.key, str) or not self.key:
            raise ValueError(f"key must be a non-empty string, got {self.key!r}")
        # bool is an int subclass but is never a meaningful item value
        if isinstance(self.value, bool) or not isinstance(self.value, (str, int, float)):
            raise ValueError(
                f"value must be a string or a number, got {type(self.value).__name__}"
            )
        if isinstance(self.value, float) and not math.isfinite(self.value):
            raise ValueError(f"value must be a finite number, got {self.value!r}")
        if self.clock is not None:
            if isinstance(self.clock, bool) or not isinstance(self.clock, int):
                raise ValueError(f"clock must be an integer timestamp, got {self.clock!r}")
            if self.clock < 0:
                raise ValueError(f"clock must not be negative, got {self.clock}")


def create_metric(
    host: str,
    key: str,
    value: MetricValue,
    clock: Optional[int] = None,
) -> Metric:
    """Factory function that creates a validated Metric."""
    return Metric(host=host, key=key, value=value, clock=clock)


def metric_to_dict(metric: Metric) -> dict:
    """Convert a Metric to the dict shape carried in a sender request.

    ``clock`` is only present when the metric has one, so the collector
    stamps the value with its own ingestion time otherwise.
    """
    item = {
        "host": metric.host,
        "value": metric.value,
        "key": metric.key,
    }
    if metric.clock is not None:
        item["clock"] = metric.clock
    return item


def metric_from_dict(item: dict) -> Metric:
    """Build a Metric from one entry of a sender request's ``data`` list."""
    return Metric(
        host=item.get("host"),
        key=item.get("key"),
        value=item.get("value"),
        clock=item.get("clock"),
    )
