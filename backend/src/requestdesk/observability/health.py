"""Health checks for the record store and attachment storage."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..domain.ports.store import StorePort
from .logging_config import get_logger

logger = get_logger(__name__)

HEALTH_PROBE_COLLECTION = "users"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_store_health(store: StorePort) -> ComponentHealth:
    """Probe the record store with a cheap read."""
    try:
        start = time.time()
        store.get(HEALTH_PROBE_COLLECTION, "__health__")
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message=f"{type(store).__name__} OK",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        logger.error(f"Store health check failed: {e}", exc_info=True)
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"Store error: {str(e)}")


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY
    return HealthStatus.HEALTHY
