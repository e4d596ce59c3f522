"""Source registry with per-source enablement, priority and rolling health."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import groupby
from typing import Dict, List, Optional, Tuple

from exceptions import UnknownSourceError
from listings.adapters.base import SourceAdapter
from listings.constants import UNHEALTHY_ERROR_RATE, SourcePriority
from listings.models import AdapterHealth, SourceStatus

logger = logging.getLogger(__name__)


class AdapterHealthTracker:
    """Thread-safe rolling health counters for one source."""

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0
        self._successful = 0
        self._failed = 0
        self._average_ms = 0.0
        self._last_request_time: Optional[datetime] = None

    def record(self, success: bool, latency_ms: float) -> None:
        with self._lock:
            self._total += 1
            if success:
                self._successful += 1
            else:
                self._failed += 1
            n = self._total
            self._average_ms = (self._average_ms * (n - 1) + latency_ms) / n
            self._last_request_time = datetime.now(timezone.utc)

    def snapshot(self) -> AdapterHealth:
        with self._lock:
            return AdapterHealth(
                total_requests=self._total,
                successful_requests=self._successful,
                failed_requests=self._failed,
                average_response_time_ms=self._average_ms,
                error_rate=(self._failed / self._total) if self._total else 0.0,
                last_request_time=self._last_request_time,
            )


@dataclass
class RegisteredSource:
    name: str
    adapter: SourceAdapter
    priority: int
    order: int
    enabled: bool
    timeout_seconds: Optional[float] = None
    health: AdapterHealthTracker = field(default_factory=AdapterHealthTracker)


class ServiceRegistry:
    """Holds every known source and which of them take part in searches.

    Enable/disable flips a flag read at the start of each search, so it
    never affects calls already in flight.
    """

    def __init__(self):
        self._sources: Dict[str, RegisteredSource] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        adapter: SourceAdapter,
        priority: int = SourcePriority.PRIMARY,
        timeout_seconds: Optional[float] = None,
    ) -> RegisteredSource:
        if not name:
            raise ValueError("Source name must not be empty")
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        available = adapter.is_available()
        with self._lock:
            if name in self._sources:
                raise ValueError(f"Source {name} is already registered")
            entry = RegisteredSource(
                name=name,
                adapter=adapter,
                priority=int(priority),
                order=len(self._sources),
                enabled=available,
                timeout_seconds=timeout_seconds,
            )
            self._sources[name] = entry

        adapter.attach_health(entry.health)
        if not adapter.reports_failures:
            logger.warning(
                "Source %s cannot distinguish empty results from failures; "
                "empty answers from it are not reported as errors",
                name,
            )
        logger.info(
            "Registered source %s (priority=%d, enabled=%s)", name, entry.priority, entry.enabled
        )
        return entry

    def _require(self, name: str) -> RegisteredSource:
        entry = self._sources.get(name)
        if entry is None:
            raise UnknownSourceError(name)
        return entry

    def enable(self, name: str) -> None:
        entry = self._require(name)
        entry.enabled = True
        logger.info("Source %s enabled", name)

    def disable(self, name: str) -> None:
        entry = self._require(name)
        entry.enabled = False
        logger.info("Source %s disabled", name)

    def get(self, name: str) -> RegisteredSource:
        return self._require(name)

    def names(self) -> List[str]:
        return list(self._sources)

    def list_enabled(self) -> List[RegisteredSource]:
        """Enabled and available sources, by priority then registration order."""
        with self._lock:
            entries = list(self._sources.values())
        active = [e for e in entries if e.enabled and e.adapter.is_available()]
        return sorted(active, key=lambda e: (e.priority, e.order))

    def priority_groups(self) -> List[Tuple[int, List[RegisteredSource]]]:
        return [
            (priority, list(members))
            for priority, members in groupby(self.list_enabled(), key=lambda e: e.priority)
        ]

    def record_outcome(self, name: str, success: bool, latency_ms: float) -> None:
        self._require(name).health.record(success, latency_ms)

    def health(self, name: str) -> AdapterHealth:
        return self._require(name).health.snapshot()

    def status(self, name: str) -> SourceStatus:
        entry = self._require(name)
        health = entry.health.snapshot()
        return SourceStatus(
            name=entry.name,
            priority=entry.priority,
            enabled=entry.enabled,
            available=entry.adapter.is_available(),
            healthy=health.total_requests == 0 or health.error_rate < UNHEALTHY_ERROR_RATE,
            reports_failures=entry.adapter.reports_failures,
            timeout_seconds=entry.timeout_seconds,
            health=health,
        )

    def statuses(self) -> List[SourceStatus]:
        return [self.status(name) for name in self.names()]

    def adapters(self) -> List[SourceAdapter]:
        return [entry.adapter for entry in self._sources.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)
