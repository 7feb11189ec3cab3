from __future__ import annotations

import os
import threading
from collections import defaultdict
from collections.abc import Iterable


def _labels(**labels: object) -> str:
    return ",".join(f'{name}="{value}"' for name, value in labels.items())


class PrometheusMetrics:
    """Text-format exporter for HTTP traffic and ledger operation outcomes."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._requests: dict[tuple[str, str, int], int] = defaultdict(int)
        self._latency: dict[tuple[str, str], float] = defaultdict(float)
        self._ledger_operations: dict[tuple[str, str], int] = defaultdict(int)

    @classmethod
    def from_env(cls) -> PrometheusMetrics:
        raw = os.getenv("ENABLE_PROMETHEUS_METRICS", "false").strip().lower()
        return cls(enabled=raw in {"1", "true", "yes", "on"})

    def observe_http_request(self, path: str, method: str, status_code: int, elapsed_seconds: float) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._requests[(path, method, status_code)] += 1
            self._latency[(path, method)] += elapsed_seconds

    def observe_ledger_operation(self, operation: str, outcome: str) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._ledger_operations[(operation, outcome)] += 1

    @staticmethod
    def _family(name: str, description: str, samples: Iterable[tuple[str, str]]) -> list[str]:
        lines = [f"# HELP {name} {description}", f"# TYPE {name} counter"]
        lines.extend(f"{name}{{{labels}}} {value}" for labels, value in samples)
        return lines

    def render(self) -> str:
        if not self.enabled:
            return "# metrics disabled\n"

        with self._lock:
            requests = sorted(self._requests.items())
            latency = sorted(self._latency.items())
            operations = sorted(self._ledger_operations.items())

        lines = self._family(
            "http_requests_total",
            "Total HTTP requests by path, method and status.",
            ((_labels(path=path, method=method, status=status), str(count)) for (path, method, status), count in requests),
        )
        lines += self._family(
            "http_request_duration_seconds_sum",
            "Total request latency in seconds by path and method.",
            ((_labels(path=path, method=method), f"{total:.6f}") for (path, method), total in latency),
        )
        lines += self._family(
            "ledger_operations_total",
            "Ledger operations by route and outcome.",
            ((_labels(operation=operation, outcome=outcome), str(count)) for (operation, outcome), count in operations),
        )
        lines.append("")
        return "\n".join(lines)
