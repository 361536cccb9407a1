"""Observability API endpoints: Prometheus metrics and health."""

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .health import HealthStatus, check_store_health, get_overall_health

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", summary="Health check endpoint")
def health_check(request: Request):
    """Returns 200 when the record store answers, 503 otherwise."""
    components = {"store": check_store_health(request.app.state.store)}
    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "components": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        },
    }
    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503
    return JSONResponse(content=response_data, status_code=status_code)
