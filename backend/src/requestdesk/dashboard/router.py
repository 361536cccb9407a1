"""Dashboard API Router"""

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_actor
from ..auth.identity import IdentityFacts
from ..dependencies import get_dashboard_service
from ..requests.schemas import ClearResponse
from .schemas import DashboardPanel, DashboardResponse
from .service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse, summary="Dashboard statistics and recent records")
def get_dashboard(
    actor: IdentityFacts = Depends(get_current_actor),
    service: DashboardService = Depends(get_dashboard_service),
):
    return DashboardResponse.model_validate(service.overview(actor))


@router.post("/{panel}/clear", response_model=ClearResponse, summary="Clear a recent panel")
def clear_panel(
    panel: DashboardPanel,
    actor: IdentityFacts = Depends(get_current_actor),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Hide the records currently shown in the panel from the dashboard.
    They remain on the request lists."""
    target = service.requests if panel == DashboardPanel.REQUESTS else service.password_resets
    applied = target.clear_dashboard(actor)
    return ClearResponse(applied_ids=applied, count=len(applied))
