"""List page filters, dashboard slicing and dashboard statistics.

Operates on snapshots that already passed the VisibilityEngine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, TypeVar

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole
from ..domain.records import ManageableRecord
from ..password_resets.models import PasswordResetRequest
from ..password_resets.status import PasswordResetStatus
from ..requests.models import DocumentRequest
from ..requests.status import RequestStatus

R = TypeVar("R", bound=ManageableRecord)

DEFAULT_RECENT_LIMIT = 5


class ListTab(str, Enum):
    ALL = "all"
    NEW = "new"              # Anything not completed yet
    COMPLETED = "completed"  # History


@dataclass(frozen=True)
class RequestListFilter:
    """Filters of the requests list page.

    Attributes:
        tab: new / completed / all
        status: Exact status value, None for all
        search: Case-insensitive substring over student name, document type and id
    """
    tab: ListTab = ListTab.ALL
    status: Optional[str] = None
    search: Optional[str] = None


def _is_completed(record: ManageableRecord) -> bool:
    status = getattr(record, "status", None)
    return status in (RequestStatus.COMPLETED, PasswordResetStatus.COMPLETED)


def _searchable(record: ManageableRecord) -> List[str]:
    if isinstance(record, DocumentRequest):
        return [record.student_name, record.document_type.value, record.id]
    if isinstance(record, PasswordResetRequest):
        return [record.requester_name, "Password Reset", record.id]
    return [record.id]


def matches(record: ManageableRecord, list_filter: RequestListFilter) -> bool:
    if list_filter.tab == ListTab.NEW and _is_completed(record):
        return False
    if list_filter.tab == ListTab.COMPLETED and not _is_completed(record):
        return False

    if list_filter.status and record.status.value != list_filter.status:
        return False

    term = (list_filter.search or "").strip().lower()
    if term and not any(term in (value or "").lower() for value in _searchable(record)):
        return False
    return True


def sort_newest_first(records: Iterable[R]) -> List[R]:
    """Order by created_at descending, ties broken by id descending."""
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


def filter_list(records: Iterable[R], list_filter: RequestListFilter) -> List[R]:
    return sort_newest_first(r for r in records if matches(r, list_filter))


def recent(records: Iterable[R], limit: int = DEFAULT_RECENT_LIMIT) -> List[R]:
    """The dashboard "recent" slice: newest ``limit`` records."""
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return sort_newest_first(records)[:limit]


@dataclass(frozen=True)
class DashboardStats:
    total: int = 0
    pending: int = 0
    assigned: int = 0
    completed: int = 0
    action_needed: int = 0


def dashboard_stats(
    viewer: IdentityFacts,
    requests: Sequence[DocumentRequest],
    password_resets: Sequence[PasswordResetRequest],
) -> DashboardStats:
    """Counts shown on the dashboard cards.

    Password resets contribute to total, pending and completed. Super admins
    also count pending resets as needing action, since only they can assign
    them.
    """
    def count(records, status):
        return sum(1 for r in records if r.status == status)

    pending_resets = count(password_resets, PasswordResetStatus.PENDING)
    action_needed = count(requests, RequestStatus.ACTION_NEEDED)
    if viewer.role == UserRole.SUPER_ADMIN:
        action_needed += pending_resets

    return DashboardStats(
        total=len(requests) + len(password_resets),
        pending=count(requests, RequestStatus.PENDING) + pending_resets,
        assigned=count(requests, RequestStatus.ASSIGNED),
        completed=(
            count(requests, RequestStatus.COMPLETED)
            + count(password_resets, PasswordResetStatus.COMPLETED)
        ),
        action_needed=action_needed,
    )
