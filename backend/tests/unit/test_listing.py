"""Unit tests for list filters, the dashboard recent slice and statistics"""

from datetime import datetime, timedelta, timezone

import pytest

from requestdesk.auth.roles import UserRole
from requestdesk.password_resets.models import PasswordResetRequest
from requestdesk.password_resets.status import PasswordResetStatus
from requestdesk.requests.models import DocumentType
from requestdesk.requests.status import RequestStatus
from requestdesk.visibility.listing import (
    ListTab,
    RequestListFilter,
    dashboard_stats,
    filter_list,
    recent,
    sort_newest_first,
)

T0 = datetime(2025, 3, 7, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def records(make_record, profiles):
    return [
        make_record("A123_001_0307", status=RequestStatus.PENDING, created_at=T0,
                    document_type=DocumentType.REFERENCE_LETTER),
        make_record("A123_002_0307", status=RequestStatus.COMPLETED, created_at=T0 + timedelta(hours=1),
                    document_type=DocumentType.ACADEMIC_REPORT),
        make_record("B456_001_0307", student=profiles.other_student, status=RequestStatus.ACTION_NEEDED,
                    created_at=T0 + timedelta(hours=2), document_type=DocumentType.PREDICTED_GRADES),
    ]


def reset(reset_id, status, created_at=T0):
    return PasswordResetRequest(
        id=reset_id, status=status, role=UserRole.STAFF, first_name="Alan", last_name="Turing",
        email="alan@school.org", created_at=created_at,
    )


def ids(items):
    return [item.id for item in items]


class TestFilterList:

    def test_default_is_newest_first(self, records):
        assert ids(filter_list(records, RequestListFilter())) == [
            "B456_001_0307", "A123_002_0307", "A123_001_0307",
        ]

    def test_new_tab_excludes_completed(self, records):
        result = filter_list(records, RequestListFilter(tab=ListTab.NEW))
        assert ids(result) == ["B456_001_0307", "A123_001_0307"]

    def test_completed_tab(self, records):
        assert ids(filter_list(records, RequestListFilter(tab=ListTab.COMPLETED))) == ["A123_002_0307"]

    def test_status_filter(self, records):
        result = filter_list(records, RequestListFilter(status="ACTION_NEEDED"))
        assert ids(result) == ["B456_001_0307"]

    @pytest.mark.parametrize("term, expected", [
        ("olive", ["B456_001_0307"]),
        ("REFERENCE", ["A123_001_0307"]),
        ("a123_002", ["A123_002_0307"]),
        ("nothing-matches", []),
    ])
    def test_search(self, records, term, expected):
        assert ids(filter_list(records, RequestListFilter(search=term))) == expected

    def test_ties_broken_by_id(self, make_record):
        same_time = [make_record("X_001_0101", created_at=T0), make_record("X_002_0101", created_at=T0)]
        assert ids(sort_newest_first(same_time)) == ["X_002_0101", "X_001_0101"]

    def test_password_resets_searchable(self):
        resets = [reset("pr-1", PasswordResetStatus.PENDING)]
        assert ids(filter_list(resets, RequestListFilter(search="password reset"))) == ["pr-1"]
        assert ids(filter_list(resets, RequestListFilter(search="turing"))) == ["pr-1"]


class TestRecent:

    def test_limit(self, records):
        assert ids(recent(records, 2)) == ["B456_001_0307", "A123_002_0307"]

    def test_zero_limit(self, records):
        assert recent(records, 0) == []

    def test_negative_limit_rejected(self, records):
        with pytest.raises(ValueError):
            recent(records, -1)


class TestDashboardStats:

    def test_counts(self, records, people):
        resets = [reset("pr-1", PasswordResetStatus.PENDING), reset("pr-2", PasswordResetStatus.COMPLETED)]
        stats = dashboard_stats(people.admin, records, resets)

        assert stats.total == 5
        assert stats.pending == 2
        assert stats.assigned == 0
        assert stats.completed == 2
        assert stats.action_needed == 1

    def test_super_admin_counts_pending_resets_as_action_needed(self, records, people):
        resets = [reset("pr-1", PasswordResetStatus.PENDING)]
        assert dashboard_stats(people.super_admin, records, resets).action_needed == 2

    def test_empty(self, people):
        stats = dashboard_stats(people.student, [], [])
        assert (stats.total, stats.pending, stats.completed) == (0, 0, 0)
