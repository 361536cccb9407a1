"""Shared write path for manageable records.

Every mutation follows the same optimistic cycle:

    fresh read → engine decides (Transition) → store.patch(changes) → notify

Field transforms carrying a precondition (attachment review) fail with
PreconditionFailedError when the record changed between read and write; the
cycle is then repeated against the fresh state, up to ``max_attempts`` times.
Notification fan-out happens after the write and never affects its outcome.
"""

import logging
from typing import Callable, ClassVar, Generic, List, Optional, Type, TypeVar

from ..auth.identity import IdentityFacts
from ..deletion.batching import commit_in_chunks
from ..deletion.policy import DeletionPolicy
from ..notifications.service import Notifier
from ..observability.metrics import transition_conflicts_total, transitions_total
from ..visibility.engine import can_view, listed_records, view_record
from ..visibility.listing import RequestListFilter, filter_list
from .errors import ConcurrentModificationError, NotFoundError, PreconditionFailedError
from .ports.store import StorePort, Subscription
from .ports.user_directory import UserDirectoryPort
from .records import ManageableRecord
from .transition import Transition

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ManageableRecord)


class RecordService(Generic[R]):
    """Base class of the per-kind services.

    Args:
        store: Record store
        directory: User lookup (assignees, super admin fan-out)
        notifier: Delivers routed notifications
        deletion: Hard/soft deletion policy
        batch_max_size: Largest atomic batch of bulk operations
        recent_limit: Size of the dashboard "recent" slice
        max_attempts: Fresh reads before ConcurrentModificationError
    """

    record_type: ClassVar[Type[ManageableRecord]]
    entity_name: ClassVar[str] = "Record"

    def __init__(
        self,
        store: StorePort,
        directory: UserDirectoryPort,
        notifier: Notifier,
        deletion: Optional[DeletionPolicy] = None,
        batch_max_size: int = 450,
        recent_limit: int = 5,
        max_attempts: int = 3,
    ):
        self.store = store
        self.directory = directory
        self.notifier = notifier
        self.deletion = deletion or DeletionPolicy()
        self.batch_max_size = batch_max_size
        self.recent_limit = recent_limit
        self.max_attempts = max_attempts

    @property
    def collection(self) -> str:
        return self.record_type.collection

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, record_id: str) -> R:
        """Fresh, unfiltered read. Raises NotFoundError."""
        data = self.store.get(self.collection, record_id)
        if data is None:
            raise NotFoundError(self.entity_name, record_id)
        return self.record_type.from_dict(data)

    def all_records(self) -> List[R]:
        return [self.record_type.from_dict(d) for d in self.store.list(self.collection)]

    def get(self, actor: IdentityFacts, record_id: str) -> R:
        """The record as the actor may see it."""
        return view_record(actor, self.load(record_id))

    def listed(self, actor: IdentityFacts) -> List[R]:
        """Every record on the actor's lists (visibility applied)."""
        return listed_records(actor, self.all_records())

    def list(self, actor: IdentityFacts, list_filter: Optional[RequestListFilter] = None) -> List[R]:
        return filter_list(self.listed(actor), list_filter or RequestListFilter())

    # ------------------------------------------------------------------
    # Push subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        actor: IdentityFacts,
        callback: Callable[[List[R]], None],
        list_filter: Optional[RequestListFilter] = None,
    ) -> Subscription:
        """Push the actor's list now and after every change to the collection.

        Visibility and filters are re-applied to each raw snapshot, so records
        the actor hides or loses access to drop out of the next push.
        """
        list_filter = list_filter or RequestListFilter()

        def push(docs):
            records = [self.record_type.from_dict(d) for d in docs]
            callback(filter_list(listed_records(actor, records), list_filter))

        return self.store.subscribe(self.collection, None, push)

    def subscribe_record(
        self,
        actor: IdentityFacts,
        record_id: str,
        callback: Callable[[Optional[R]], None],
    ) -> Subscription:
        """Push the actor's view of one record; None once it is deleted.

        Raises:
            NotFoundError / UnauthorizedError: If the record cannot be opened now
        """
        self.get(actor, record_id)

        def push(docs):
            record = self.record_type.from_dict(docs[0]) if docs else None
            if record is None or not can_view(actor, record):
                callback(None)
            else:
                callback(view_record(actor, record))

        return self.store.subscribe(self.collection, lambda d: d.get("id") == record_id, push)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def apply(
        self,
        operation: str,
        record_id: str,
        decide: Callable[[R], Transition[R]],
    ) -> R:
        """Run one engine decision against the freshest record and persist it.

        Raises:
            NotFoundError: Record missing (or deleted meanwhile)
            ConcurrentModificationError: Preconditions kept failing
            UnauthorizedError / InvalidTransitionError: From the engine
        """
        for attempt in range(1, self.max_attempts + 1):
            record = self.load(record_id)
            transition = decide(record)
            if transition.is_noop:
                logger.info(
                    f"{operation} on {record_id} changed nothing",
                    extra={"operation": operation, "record_id": record_id},
                )
                return record

            try:
                stored = self.store.patch(self.collection, record_id, transition.changes)
            except PreconditionFailedError as e:
                transition_conflicts_total.labels(operation=operation).inc()
                logger.warning(
                    f"{operation} on {record_id} conflicted (attempt {attempt}): {e.message}",
                    extra={"operation": operation, "record_id": record_id},
                )
                continue
            except NotFoundError:
                raise NotFoundError(self.entity_name, record_id)

            self._record_transition(operation, record_id)
            self.notify(transition)
            return self.record_type.from_dict(stored)

        raise ConcurrentModificationError(
            f"{self.entity_name} {record_id} changed while {operation} was being applied; "
            "please reload and try again"
        )

    def insert(self, operation: str, transition: Transition[R]) -> R:
        """Persist a newly created record and notify."""
        record = transition.record
        self.store.put(self.collection, record.id, transition.changes)
        self._record_transition(operation, record.id)
        self.notify(transition)
        return record

    def notify(self, transition: Transition) -> None:
        if not transition.events:
            return
        try:
            super_admin_ids = self.directory.super_admin_ids()
        except Exception as e:
            logger.error(f"Could not resolve notification recipients: {e}", exc_info=True)
            return
        self.notifier.dispatch(transition.events, super_admin_ids)

    def _record_transition(self, operation: str, record_id: str) -> None:
        transitions_total.labels(record_kind=self.record_type.kind.value, operation=operation).inc()
        logger.info(
            f"Applied {operation} to {self.entity_name.lower()} {record_id}",
            extra={
                "operation": operation,
                "record_id": record_id,
                "record_kind": self.record_type.kind.value,
            },
        )

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, actor: IdentityFacts, record_id: str) -> None:
        """Hard delete (SUPER_ADMIN) or hide for the actor (everyone else)."""
        op = self.deletion.delete(actor, self.load(record_id))
        self.store.atomic_batch([op])
        self._record_transition("delete", record_id)

    def clear_displayed(
        self,
        actor: IdentityFacts,
        list_filter: Optional[RequestListFilter] = None,
    ) -> List[str]:
        """Delete/hide every record currently displayed with ``list_filter``.

        Raises:
            PartialBatchFailureError: A chunk failed; earlier chunks stay applied
        """
        displayed = self.list(actor, list_filter)
        ops = self.deletion.clear_displayed(actor, displayed)
        applied = commit_in_chunks(self.store, ops, self.batch_max_size)
        logger.info(
            f"Cleared {len(applied)} displayed {self.entity_name.lower()}(s)",
            extra={"user_id": actor.id, "operation": "clear_displayed"},
        )
        return applied

    def hide_from_dashboard(self, actor: IdentityFacts, record_id: str) -> None:
        op = self.deletion.hide_from_dashboard(actor, self.load(record_id))
        self.store.atomic_batch([op])

    def clear_dashboard(self, actor: IdentityFacts) -> List[str]:
        ops = self.deletion.clear_dashboard(actor, self.all_records(), self.recent_limit)
        return commit_in_chunks(self.store, ops, self.batch_max_size)
