"""Metrics about calls made to the OpenStack API."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from . import errors as _errors

DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class _LabeledMetric:
    def __init__(self, name: str, help: str, label_names: Sequence[str], namespace: str = "") -> None:
        self.name = name
        self.help = help
        self.namespace = namespace
        self.label_names = tuple(label_names)
        self._lock = threading.Lock()

    @property
    def full_name(self) -> str:
        return f"{self.namespace}_{self.name}" if self.namespace else self.name

    def _key(self, label_values: Sequence[str]) -> tuple[str, ...]:
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"{self.full_name}: expected {len(self.label_names)} label values, got {len(label_values)}"
            )
        return tuple(label_values)


class LabeledCounter(_LabeledMetric):
    """A counter partitioned by label values."""

    def __init__(self, name: str, help: str, label_names: Sequence[str], namespace: str = "") -> None:
        super().__init__(name, help, label_names, namespace)
        self._values: dict[tuple[str, ...], float] = {}

    def inc(self, *args: str) -> None:
        key = self._key(args)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + 1.0

    def value(self, *args: str) -> float:
        key = self._key(args)
        with self._lock:
            return self._values.get(key, 0.0)


class LabeledHistogram(_LabeledMetric):
    """A histogram of observations partitioned by label values."""

    def __init__(
        self,
        name: str,
        help: str,
        label_names: Sequence[str],
        namespace: str = "",
        buckets: Sequence[float] = DEFAULT_BUCKETS,
    ) -> None:
        super().__init__(name, help, label_names, namespace)
        self.buckets = tuple(sorted(buckets))
        self._counts: dict[tuple[str, ...], int] = {}
        self._sums: dict[tuple[str, ...], float] = {}
        self._bucket_counts: dict[tuple[str, ...], list[int]] = {}

    def observe(self, value: float, *args: str) -> None:
        key = self._key(args)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + 1
            self._sums[key] = self._sums.get(key, 0.0) + value
            counts = self._bucket_counts.setdefault(key, [0] * len(self.buckets))
            for position, bound in enumerate(self.buckets):
                if value <= bound:
                    counts[position] += 1

    def count(self, *args: str) -> int:
        key = self._key(args)
        with self._lock:
            return self._counts.get(key, 0)

    def total(self, *args: str) -> float:
        """Return the sum of observed values for the labels."""
        key = self._key(args)
        with self._lock:
            return self._sums.get(key, 0.0)

    def bucket_counts(self, *args: str) -> dict[float, int]:
        """Return the cumulative count per upper bound for the labels."""
        key = self._key(args)
        with self._lock:
            counts = self._bucket_counts.get(key, [0] * len(self.buckets))
            return dict(zip(self.buckets, counts))


Metric = Union[LabeledCounter, LabeledHistogram]


@dataclass
class OpenStackMetrics:
    """The metrics kept about one family of requests."""

    duration: LabeledHistogram
    total: LabeledCounter
    errors: LabeledCounter


class MetricsRegistry:
    """A collection of metrics addressed by full name."""

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

    def register(self, metric: Metric) -> None:
        """Add a metric; a name can be registered only once."""
        with self._lock:
            if metric.full_name in self._metrics:
                raise ValueError(f"metric {metric.full_name} is already registered")
            self._metrics[metric.full_name] = metric

    def get(self, name: str) -> Optional[Metric]:
        with self._lock:
            return self._metrics.get(name)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._metrics

    def __iter__(self):
        with self._lock:
            return iter(list(self._metrics.values()))


DEFAULT_REGISTRY = MetricsRegistry()

_API_METRICS = OpenStackMetrics(
    duration=LabeledHistogram(
        "openstack_api_request_duration_seconds",
        "Latency of an OpenStack API call",
        ["request"],
        namespace="capo",
    ),
    total=LabeledCounter(
        "openstack_api_requests_total",
        "Total number of OpenStack API calls",
        ["request"],
        namespace="capo",
    ),
    errors=LabeledCounter(
        "openstack_api_request_errors_total",
        "Total number of errors for an OpenStack API call",
        ["request"],
        namespace="capo",
    ),
)

_register_lock = threading.Lock()


def api_request_metrics() -> OpenStackMetrics:
    """Return the metrics kept about OpenStack API requests."""
    return _API_METRICS


def register_api_metrics(registry: Optional[MetricsRegistry] = None) -> None:
    """Register the API request metrics; repeated calls are no-ops."""
    registry = DEFAULT_REGISTRY if registry is None else registry
    with _register_lock:
        for metric in (_API_METRICS.duration, _API_METRICS.total, _API_METRICS.errors):
            if registry.get(metric.full_name) is metric:
                continue
            registry.register(metric)


class MetricContext:
    """Times one API request and counts its outcome."""

    def __init__(self, resource: str, request: str, start: Optional[float] = None) -> None:
        self.start = time.monotonic() if start is None else start
        self.attributes = (f"{resource}_{request}",)

    def observe_request(self, err: Optional[BaseException]) -> Optional[BaseException]:
        """Record the request in the API metrics and return ``err``."""
        return self.observe(_API_METRICS, err)

    def observe_request_ignore_not_found(self, err: Optional[BaseException]) -> Optional[BaseException]:
        """Like observe_request, but a not-found error is not counted as an error."""
        if _errors.is_not_found(err):
            self.observe_request(None)
            return err
        return self.observe_request(err)

    def observe_request_ignore_not_found_or_conflict(
        self, err: Optional[BaseException]
    ) -> Optional[BaseException]:
        """Like observe_request, but not-found and conflict errors are not counted."""
        if _errors.is_not_found(err) or _errors.is_conflict(err):
            self.observe_request(None)
            return err
        return self.observe_request(err)

    def observe(self, metrics: Optional[OpenStackMetrics], err: Optional[BaseException]) -> Optional[BaseException]:
        """Record latency and outcome in ``metrics`` and return ``err``."""
        if metrics is None:
            return err
        metrics.duration.observe(time.monotonic() - self.start, *self.attributes)
        metrics.total.inc(*self.attributes)
        if err is not None:
            metrics.errors.inc(*self.attributes)
        return err