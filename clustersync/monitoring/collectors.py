"""In-process metric collectors with Prometheus text exposition."""

from __future__ import annotations

import bisect
import math
import threading
import time
from typing import Sequence

DEFAULT_BUCKETS: tuple[float, ...] = (
    0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
)


def _fq_name(name: str, subsystem: str = "") -> str:
    return "_".join(part for part in (subsystem, name) if part)


def _format_value(value: float) -> str:
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _labels(names: Sequence[str], values: Sequence[str], extra: Sequence[tuple[str, str]] = ()) -> str:
    pairs = list(zip(names, values)) + list(extra)
    if not pairs:
        return ""
    return "{" + ",".join(f'{n}="{_escape_label(v)}"' for n, v in pairs) + "}"


def _header(name: str, help_text: str, kind: str) -> list[str]:
    return [f"# HELP {name} {_escape_help(help_text)}", f"# TYPE {name} {kind}"]


class Counter:
    """A monotonically increasing value."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0.0

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        with self._lock:
            return self._value


class Gauge:
    """A single value that can go up and down."""

    def __init__(self, name: str, help: str, subsystem: str = "") -> None:
        self.name = _fq_name(name, subsystem)
        self.help = help
        self._lock = threading.Lock()
        self._value = 0.0

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def set_to_current_time(self) -> None:
        self.set(time.time())

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def expose(self) -> str:
        lines = _header(self.name, self.help, "gauge")
        lines.append(f"{self.name} {_format_value(self.value)}")
        return "\n".join(lines) + "\n"


class Histogram:
    """Observations counted into cumulative buckets."""

    def __init__(self, buckets: Sequence[float] = DEFAULT_BUCKETS) -> None:
        bounds = sorted(float(b) for b in buckets if not math.isinf(b))
        self._bounds = tuple(bounds)
        self._lock = threading.Lock()
        self._counts = [0] * (len(bounds) + 1)
        self._sum = 0.0
        self._count = 0

    def observe(self, value: float) -> None:
        index = bisect.bisect_left(self._bounds, value)
        with self._lock:
            self._counts[index] += 1
            self._sum += value
            self._count += 1

    @property
    def sum(self) -> float:
        with self._lock:
            return self._sum

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def buckets(self) -> list[tuple[float, int]]:
        """Upper bounds with cumulative counts, ending with +Inf."""
        with self._lock:
            counts = list(self._counts)
        result = []
        running = 0
        for bound, n in zip(self._bounds + (math.inf,), counts):
            running += n
            result.append((bound, running))
        return result


class _Vec:
    kind = ""

    def __init__(self, name: str, help: str, label_names: Sequence[str], subsystem: str = "") -> None:
        self.name = _fq_name(name, subsystem)
        self.help = help
        self.label_names = tuple(label_names)
        self._lock = threading.Lock()
        self._children: dict[tuple[str, ...], object] = {}

    def _new_child(self):
        raise NotImplementedError

    def _child_lines(self, values: tuple[str, ...], child) -> list[str]:
        raise NotImplementedError

    def _child(self, args: Sequence[str]):
        if len(args) != len(self.label_names):
            raise ValueError(
                f"{self.name}: expected {len(self.label_names)} label values, got {len(args)}"
            )
        key = tuple(str(a) for a in args)
        with self._lock:
            child = self._children.get(key)
            if child is None:
                child = self._children[key] = self._new_child()
            return child

    def _size(self) -> int:
        with self._lock:
            return len(self._children)

    def _exposition(self) -> str:
        with self._lock:
            items = sorted(self._children.items())
        if not items:
            return ""
        lines = _header(self.name, self.help, self.kind)
        for values, child in items:
            lines.extend(self._child_lines(values, child))
        return "\n".join(lines) + "\n"


class CounterVec(_Vec):
    """Counters partitioned by label values."""

    kind = "counter"

    def _new_child(self) -> Counter:
        return Counter()

    def _child_lines(self, values, child: Counter) -> list[str]:
        return [f"{self.name}{_labels(self.label_names, values)} {_format_value(child.value)}"]

    def with_label_values(self, *args: str) -> Counter:
        """Return the counter for these label values, creating it if needed."""
        return self._child(args)

    def count(self) -> int:
        """Number of distinct label combinations seen."""
        return self._size()

    def expose(self) -> str:
        return self._exposition()


class HistogramVec(_Vec):
    """Histograms partitioned by label values."""

    kind = "histogram"

    def __init__(
        self,
        name: str,
        help: str,
        label_names: Sequence[str],
        subsystem: str = "",
        buckets: Sequence[float] = DEFAULT_BUCKETS,
    ) -> None:
        super().__init__(name, help, label_names, subsystem)
        self._buckets = tuple(buckets)

    def _new_child(self) -> Histogram:
        return Histogram(self._buckets)

    def _child_lines(self, values, child: Histogram) -> list[str]:
        lines = []
        for bound, cumulative in child.buckets:
            labels = _labels(self.label_names, values, [("le", _format_value(bound))])
            lines.append(f"{self.name}_bucket{labels} {cumulative}")
        plain = _labels(self.label_names, values)
        lines.append(f"{self.name}_sum{plain} {_format_value(child.sum)}")
        lines.append(f"{self.name}_count{plain} {child.count}")
        return lines

    def with_label_values(self, *args: str) -> Histogram:
        """Return the histogram for these label values, creating it if needed."""
        return self._child(args)

    def count(self) -> int:
        """Number of distinct label combinations seen."""
        return self._size()

    def expose(self) -> str:
        return self._exposition()


class Registry:
    """A set of uniquely named collectors."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._collectors: dict[str, object] = {}

    def register(self, collector):
        with self._lock:
            if collector.name in self._collectors:
                raise ValueError(f"duplicate metrics collector registration attempted: {collector.name}")
            self._collectors[collector.name] = collector
        return collector

    def expose(self) -> str:
        with self._lock:
            collectors = [self._collectors[name] for name in sorted(self._collectors)]
        return "".join(c.expose() for c in collectors)


_DEFAULT_REGISTRY = Registry()


def default_registry() -> Registry:
    """Return the process-wide registry."""
    return _DEFAULT_REGISTRY