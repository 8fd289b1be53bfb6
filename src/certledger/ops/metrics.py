"""Request counting port.

The query surface only reports that a request happened. Exporting counters
(Prometheus or otherwise) is left to whatever implements ``MetricsPort``.
"""

from __future__ import annotations

import threading
from typing import Dict, Protocol


class MetricsPort(Protocol):
    def increment_http_req(self) -> None:
        ...


class NullMetrics:
    """Discards every count."""

    def increment_http_req(self) -> None:
        return None


class InMemoryMetrics:
    """Thread-safe in-process counters, mainly for tests and the CLI."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {}

    def increment_http_req(self) -> None:
        self._increment("http_requests_total")

    def _increment(self, name: str) -> None:
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + 1

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)
