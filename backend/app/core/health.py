"""
Health check aggregation — deep health probe for the service.

Checks:
    • In-memory store (row counts, primary contact present)
    • Notification delivery backend (simulated or gateway configured)

A missing primary contact is DEGRADED, not UNHEALTHY: the API still
serves, but the emergency trigger will refuse until one is set.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from backend.app.alerts.notifier import NotificationDelivery
from backend.app.core.config import settings
from backend.app.safety.storage import MemStorage

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    latency_ms: float = 0.0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = settings.APP_VERSION
    environment: str = settings.ENVIRONMENT
    timestamp: str = ""
    uptime_seconds: float = 0.0
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "components": [c.to_dict() for c in self.components],
        }


# Track application start time
_start_time = time.monotonic()


def check_store(storage: MemStorage) -> ComponentHealth:
    comp = ComponentHealth(name="store")
    start = time.monotonic()
    try:
        comp.details = storage.stats()
        if storage.get_primary_emergency_contact() is None:
            comp.status = HealthStatus.DEGRADED
            comp.message = "No primary contact configured"
        else:
            comp.message = "Primary contact configured"
    except Exception as e:
        logger.error("Store health check failed: %s", e)
        comp.status = HealthStatus.UNHEALTHY
        comp.message = str(e)
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def check_notifier(notifier: NotificationDelivery) -> ComponentHealth:
    comp = ComponentHealth(name="notifier")
    start = time.monotonic()
    comp.details = {"mode": notifier.mode}
    comp.message = (
        "SMS delivery simulated" if notifier.mode == "simulation"
        else f"SMS delivery via {notifier.mode}"
    )
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


async def run_health_check(
    storage: MemStorage, notifier: NotificationDelivery,
) -> HealthReport:
    """Run all health checks and aggregate into a report."""
    report = HealthReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=time.monotonic() - _start_time,
    )
    report.components = [check_store(storage), check_notifier(notifier)]

    statuses = [c.status for c in report.components]
    if HealthStatus.UNHEALTHY in statuses:
        report.status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        report.status = HealthStatus.DEGRADED
    else:
        report.status = HealthStatus.HEALTHY

    return report
