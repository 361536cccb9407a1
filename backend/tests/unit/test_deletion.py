"""Unit tests for DeletionPolicy and chunked batch commits"""

from unittest.mock import MagicMock

import pytest

from requestdesk.domain.errors import PartialBatchFailureError, UnauthorizedError
from requestdesk.domain.ports.store import ArrayUnion, BatchOp, BatchOpKind
from requestdesk.deletion.batching import chunk, commit_in_chunks
from requestdesk.deletion.policy import DeletionPolicy
from requestdesk.infrastructure.store.memory_store import MemoryStore


@pytest.fixture
def policy():
    return DeletionPolicy()


class TestDeletionPolicy:

    def test_super_admin_hard_deletes(self, policy, make_record, people):
        op = policy.delete(people.super_admin, make_record())
        assert op.kind == BatchOpKind.DELETE
        assert (op.collection, op.doc_id) == ("requests", "A123_001_0307")

    def test_student_soft_deletes_own_request(self, policy, make_record, people):
        op = policy.delete(people.student, make_record())
        assert op.kind == BatchOpKind.PATCH
        assert op.fields == {"hidden_from_users": ArrayUnion(("stu-1",))}

    def test_staff_soft_deletes_assigned_request(self, policy, make_record, people):
        op = policy.delete(people.staff, make_record(assigned_to_id="staff-1"))
        assert op.kind == BatchOpKind.PATCH

    def test_out_of_scope_delete_refused(self, policy, make_record, people):
        with pytest.raises(UnauthorizedError):
            policy.delete(people.other_student, make_record())
        with pytest.raises(UnauthorizedError):
            policy.delete(people.staff_2, make_record(assigned_to_id="staff-1"))

    def test_clear_displayed_skips_records_already_hidden(self, policy, make_record, people):
        records = [
            make_record("A123_001_0307"),
            make_record("A123_002_0307", hidden_from_users=["stu-1"]),
        ]
        ops = policy.clear_displayed(people.student, records)
        assert [op.doc_id for op in ops] == ["A123_001_0307"]

    def test_hide_from_dashboard(self, policy, make_record, people):
        op = policy.hide_from_dashboard(people.student, make_record())
        assert op.fields == {"dashboard_hidden": True}
        with pytest.raises(UnauthorizedError):
            policy.hide_from_dashboard(people.other_student, make_record())

    def test_clear_dashboard_hides_only_recent_slice(self, policy, make_record, people):
        records = [make_record(f"A123_{n:03d}_0307") for n in range(1, 8)]
        ops = policy.clear_dashboard(people.student, records, limit=5)
        assert [op.doc_id for op in ops] == [f"A123_{n:03d}_0307" for n in range(7, 2, -1)]


class TestChunk:

    def test_chunks(self):
        assert list(chunk([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert list(chunk([], 3)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunk([1], 0))


class TestCommitInChunks:

    def _seed(self, store, count):
        for n in range(count):
            store.put("requests", f"r{n}", {"status": "PENDING"})
        return [BatchOp.delete("requests", f"r{n}") for n in range(count)]

    def test_all_chunks_committed(self):
        store = MemoryStore()
        ops = self._seed(store, 5)

        applied = commit_in_chunks(store, ops, max_size=2)

        assert applied == ["r0", "r1", "r2", "r3", "r4"]
        assert store.list("requests") == []

    def test_chunk_size_clamped_to_store_limit(self):
        store = MagicMock()
        store.max_batch_size = 3
        ops = [BatchOp.delete("requests", f"r{n}") for n in range(7)]

        commit_in_chunks(store, ops, max_size=450)

        assert [len(call.args[0]) for call in store.atomic_batch.call_args_list] == [3, 3, 1]

    def test_failure_reports_applied_and_remaining(self):
        store = MemoryStore()
        ops = self._seed(store, 4)
        # Patch of a missing document makes the second chunk fail as a whole
        ops.insert(3, BatchOp.patch("requests", "ghost", {"status": "COMPLETED"}))

        with pytest.raises(PartialBatchFailureError) as exc_info:
            commit_in_chunks(store, ops, max_size=2)

        error = exc_info.value
        assert error.applied_ids == ["r0", "r1"]
        assert error.remaining_ids == ["r2", "ghost", "r3"]
        assert [d["id"] for d in store.list("requests")] == ["r2", "r3"]

    def test_nothing_to_do(self):
        assert commit_in_chunks(MemoryStore(), [], max_size=10) == []
