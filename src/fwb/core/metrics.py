"""In-memory metrics sink rendered in Prometheus text format."""

from __future__ import annotations

from collections import defaultdict
from typing import Optional


Labels = tuple[tuple[str, str], ...]

HELP_TEXT: dict[str, str] = {
    "fwb_table_entries": "Addresses currently held in a firewall table",
    "fwb_decisions_total": "Decisions processed by the backend",
}


def _labels(labels: Optional[dict[str, str]]) -> Labels:
    return tuple(sorted((labels or {}).items()))


class MetricsSink:
    """Gauges and counters keyed by metric name and label set."""

    def __init__(self) -> None:
        self._gauges: dict[str, dict[Labels, float]] = defaultdict(dict)
        self._counters: dict[str, dict[Labels, float]] = defaultdict(dict)

    def set_gauge(self, name: str, value: float, labels: Optional[dict[str, str]] = None) -> None:
        self._gauges[name][_labels(labels)] = value

    def set_counter(self, name: str, value: float, labels: Optional[dict[str, str]] = None) -> None:
        """Publish an absolute counter value accumulated elsewhere."""
        self._counters[name][_labels(labels)] = value

    def get(self, name: str, labels: Optional[dict[str, str]] = None) -> Optional[float]:
        key = _labels(labels)
        for store in (self._gauges, self._counters):
            if name in store and key in store[name]:
                return store[name][key]
        return None

    def as_prometheus(self) -> str:
        lines: list[str] = []
        for kind, store in (("gauge", self._gauges), ("counter", self._counters)):
            for name in sorted(store):
                if name in HELP_TEXT:
                    lines.append(f"# HELP {name} {HELP_TEXT[name]}")
                lines.append(f"# TYPE {name} {kind}")
                for labels, value in sorted(store[name].items()):
                    rendered = ",".join(f'{k}="{v}"' for k, v in labels)
                    suffix = f"{{{rendered}}}" if rendered else ""
                    lines.append(f"{name}{suffix} {value:g}")
        return "\n".join(lines) + "\n" if lines else ""
