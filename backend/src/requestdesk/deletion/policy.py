"""DeletionPolicy - hard vs soft deletion of records.

SUPER_ADMIN deletes are hard: the record is removed from the store for
everyone. Every other role soft-deletes: their id is added to the record's
``hidden_from_users`` with an atomic set-union, so concurrent hides by other
users are never lost.

The policy only builds BatchOps; committing them (chunked for bulk
operations) is done by the caller.
"""

from typing import List, Sequence

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole
from ..domain.errors import UnauthorizedError
from ..domain.ports.store import ArrayUnion, BatchOp
from ..domain.records import ManageableRecord
from ..visibility.engine import in_scope, is_listed, is_on_dashboard
from ..visibility.listing import DEFAULT_RECENT_LIMIT, recent


class DeletionPolicy:

    def delete(self, actor: IdentityFacts, record: ManageableRecord) -> BatchOp:
        """Build the deletion op for one record.

        Raises:
            UnauthorizedError: If a non-super-admin targets a record outside
                their role scope
        """
        if actor.role == UserRole.SUPER_ADMIN:
            return BatchOp.delete(record.collection, record.id)

        if not in_scope(actor, record):
            raise UnauthorizedError(f"You cannot remove request {record.id}")
        return BatchOp.patch(
            record.collection,
            record.id,
            {"hidden_from_users": ArrayUnion((actor.id,))},
        )

    def clear_displayed(
        self,
        actor: IdentityFacts,
        records: Sequence[ManageableRecord],
    ) -> List[BatchOp]:
        """Deletion ops for every displayed record the actor can see.

        Records the actor no longer has listed (hidden meanwhile, out of scope)
        are skipped rather than failing the whole operation.
        """
        return [
            self.delete(actor, record)
            for record in records
            if actor.role == UserRole.SUPER_ADMIN or is_listed(actor, record)
        ]

    def hide_from_dashboard(self, actor: IdentityFacts, record: ManageableRecord) -> BatchOp:
        """Remove a record from the dashboard "recent" panel.

        The flag is shared by all viewers; the record stays on every list.
        """
        if not in_scope(actor, record):
            raise UnauthorizedError(f"You cannot change request {record.id}")
        return BatchOp.patch(record.collection, record.id, {"dashboard_hidden": True})

    def clear_dashboard(
        self,
        actor: IdentityFacts,
        records: Sequence[ManageableRecord],
        limit: int = DEFAULT_RECENT_LIMIT,
    ) -> List[BatchOp]:
        """Hide the current "recent" slice from the dashboard."""
        shown = recent([r for r in records if is_on_dashboard(actor, r)], limit)
        return [self.hide_from_dashboard(actor, record) for record in shown]
