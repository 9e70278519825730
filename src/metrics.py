"""Checkout metrics using only the Python standard library.

Counters and a histogram modelled on the Prometheus client.  Values are
kept in module level objects and can be exported in the Prometheus text
exposition format with :func:`generate_metrics_text`.
"""

from collections import defaultdict
from threading import Lock
from typing import Dict, Iterable, List, Tuple


class Metric:
    """Base class for all metrics."""

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        self.name = name
        self.description = description
        self.label_names = list(label_names)
        self._lock = Lock()
        _METRIC_REGISTRY.append(self)

    def _label_tuple(self, labels: Dict[str, str]) -> Tuple[str, ...]:
        return tuple(labels.get(k, "") for k in self.label_names)

    def _format_labels(self, label_values: Tuple[str, ...], **extra: str) -> str:
        pairs = [f'{name}="{value}"' for name, value in zip(self.label_names, label_values)]
        pairs.extend(f'{name}="{value}"' for name, value in extra.items())
        if not pairs:
            return ""
        return "{" + ",".join(pairs) + "}"

    def reset(self) -> None:
        raise NotImplementedError

    def to_prometheus(self) -> List[str]:
        """Return a list of strings in Prometheus exposition format."""
        raise NotImplementedError


class Counter(Metric):
    """Monotonic counter, e.g. ``CHECKOUT_TOTAL.inc(outcome="success")``."""

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        super().__init__(name, description, label_names)
        self._values: Dict[Tuple[str, ...], int] = defaultdict(int)

    def inc(self, **labels: str) -> None:
        label_tuple = self._label_tuple(labels)
        with self._lock:
            self._values[label_tuple] += 1

    def value(self, **labels: str) -> int:
        """Current count for the given label values (0 if never incremented)."""
        with self._lock:
            return self._values.get(self._label_tuple(labels), 0)

    def reset(self) -> None:
        with self._lock:
            self._values.clear()

    def to_prometheus(self) -> List[str]:
        lines = [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} counter"]
        with self._lock:
            for label_values, value in self._values.items():
                lines.append(f"{self.name}{self._format_labels(label_values)} {value}")
        return lines


class Histogram(Metric):
    """Histogram with fixed, ascending bucket upper bounds.

    Observations above the largest bucket only show up in ``+Inf``.
    """

    def __init__(self, name: str, description: str, label_names: Iterable[str], buckets: Iterable[float]):
        super().__init__(name, description, label_names)
        self.buckets = sorted(float(b) for b in buckets)
        self.counts: Dict[Tuple[str, ...], List[int]] = defaultdict(lambda: [0] * len(self.buckets))
        self.sums: Dict[Tuple[str, ...], float] = defaultdict(float)
        self.total_counts: Dict[Tuple[str, ...], int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        label_tuple = self._label_tuple(labels)
        with self._lock:
            for idx, upper in enumerate(self.buckets):
                if value <= upper:
                    self.counts[label_tuple][idx] += 1
                    break
            self.total_counts[label_tuple] += 1
            self.sums[label_tuple] += float(value)

    def count(self, **labels: str) -> int:
        with self._lock:
            return self.total_counts.get(self._label_tuple(labels), 0)

    def reset(self) -> None:
        with self._lock:
            self.counts.clear()
            self.sums.clear()
            self.total_counts.clear()

    def to_prometheus(self) -> List[str]:
        lines = [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} histogram"]
        with self._lock:
            for label_values, total in self.total_counts.items():
                cumulative = 0
                for idx, upper in enumerate(self.buckets):
                    cumulative += self.counts[label_values][idx]
                    bucket_labels = self._format_labels(label_values, le=str(upper))
                    lines.append(f"{self.name}_bucket{bucket_labels} {cumulative}")
                inf_labels = self._format_labels(label_values, le="+Inf")
                lines.append(f"{self.name}_bucket{inf_labels} {total}")
                label_str = self._format_labels(label_values)
                lines.append(f"{self.name}_sum{label_str} {self.sums[label_values]}")
                lines.append(f"{self.name}_count{label_str} {total}")
        return lines


_METRIC_REGISTRY: List[Metric] = []


def generate_metrics_text() -> bytes:
    """Generate the text representation of all registered metrics."""
    lines: List[str] = []
    for metric in _METRIC_REGISTRY:
        lines.extend(metric.to_prometheus())
    return "\n".join(lines).encode("utf-8")


def reset_metrics() -> None:
    """Zero every registered metric.  Used by the test suite."""
    for metric in _METRIC_REGISTRY:
        metric.reset()


# -----------------------------------------------------------------------------
# Metrics recorded by the cart and checkout modules.
# -----------------------------------------------------------------------------

# Finished checkouts, labelled "success" or "rejected"
CHECKOUT_TOTAL = Counter(
    name="checkout_total",
    description="Total number of checkout attempts by outcome",
    label_names=["outcome"],
)

# Rejected checkouts by reason: empty_cart, expired, out_of_stock, insufficient_balance
CHECKOUT_ERROR_TOTAL = Counter(
    name="checkout_error_total",
    description="Total number of rejected checkouts, labelled by type",
    label_names=["type"],
)

# Rejected cart additions: out_of_stock, invalid_quantity, invalid_product
CART_REJECTED_TOTAL = Counter(
    name="cart_rejected_total",
    description="Total number of rejected cart additions, labelled by reason",
    label_names=["reason"],
)

# Amount charged per successful checkout (subtotal plus shipping)
CHECKOUT_AMOUNT = Histogram(
    name="checkout_amount",
    description="Amount charged per successful checkout",
    label_names=[],
    buckets=[50.0, 100.0, 250.0, 500.0, 1000.0, 2500.0, 5000.0],
)
