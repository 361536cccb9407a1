"""Dashboard overview: "recent" panels and statistic cards."""

from dataclasses import dataclass, field
from typing import List

from ..auth.identity import IdentityFacts
from ..password_resets.models import PasswordResetRequest
from ..password_resets.service import PasswordResetService
from ..requests.models import DocumentRequest
from ..requests.service import RequestService
from ..visibility.engine import dashboard_records
from ..visibility.listing import DashboardStats, dashboard_stats, recent


@dataclass
class DashboardOverview:
    stats: DashboardStats
    recent_requests: List[DocumentRequest] = field(default_factory=list)
    recent_password_resets: List[PasswordResetRequest] = field(default_factory=list)


class DashboardService:

    def __init__(self, requests: RequestService, password_resets: PasswordResetService):
        self.requests = requests
        self.password_resets = password_resets

    def overview(self, actor: IdentityFacts) -> DashboardOverview:
        """Statistics over everything listed for the actor plus the newest
        records not cleared from the dashboard."""
        requests = self.requests.all_records()
        resets = self.password_resets.all_records()
        limit = self.requests.recent_limit
        return DashboardOverview(
            stats=dashboard_stats(
                actor,
                self.requests.listed(actor),
                self.password_resets.listed(actor),
            ),
            recent_requests=recent(dashboard_records(actor, requests), limit),
            recent_password_resets=recent(dashboard_records(actor, resets), limit),
        )
