"""Notifier - persists routed notifications and serves the user inbox.

Delivery is fire-and-forget relative to the transition that produced it: a
failure while routing or persisting is logged, counted and dropped, and the
caller's operation still succeeds.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Iterable, List

from ..auth.identity import IdentityFacts
from ..deletion.batching import commit_in_chunks
from ..domain.errors import NotFoundError, NotificationDeliveryError, UnauthorizedError
from ..domain.ports.store import BatchOp, StorePort, Subscription
from ..domain.records import utcnow
from ..observability.metrics import notifications_total
from .models import NOTIFICATIONS_COLLECTION, Notification, NotificationTarget, RequestEvent
from .routing import route

logger = logging.getLogger(__name__)


def _newest_first(notifications: Iterable[Notification]) -> List[Notification]:
    return sorted(notifications, key=lambda n: (n.created_at, n.id), reverse=True)


class Notifier:
    """Notification delivery and inbox operations.

    Args:
        store: Record store holding the ``notifications`` collection
        batch_max_size: Chunk size for mark-all / delete-all
        clock: Returns the current UTC time
        id_factory: Returns fresh notification ids
    """

    def __init__(
        self,
        store: StorePort,
        batch_max_size: int = 450,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self.store = store
        self.batch_max_size = batch_max_size
        self.clock = clock
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def dispatch(self, events: Iterable[RequestEvent], super_admin_ids: List[str]) -> int:
        """Route and deliver every event. Never raises.

        Returns:
            Number of notifications persisted
        """
        delivered = 0
        for event in events:
            try:
                targets = route(event, super_admin_ids)
            except Exception as e:
                notifications_total.labels(event_type=event.type.value, status="failed").inc()
                logger.error(
                    f"Routing failed for {event.type.value} on {event.record.id}: {e}",
                    extra={"event_type": event.type.value, "record_id": event.record.id},
                    exc_info=True,
                )
                continue
            delivered += self.deliver(event.type.value, targets)
        return delivered

    def deliver(self, event_type: str, targets: Iterable[NotificationTarget]) -> int:
        """Persist one notification per target. Failures are logged and dropped."""
        delivered = 0
        for target in targets:
            try:
                self._persist(target)
            except NotificationDeliveryError as e:
                notifications_total.labels(event_type=event_type, status="failed").inc()
                logger.warning(
                    f"Dropped notification for {target.recipient_id}: {e.message}",
                    extra={"event_type": event_type, "recipient_id": target.recipient_id},
                )
                continue
            notifications_total.labels(event_type=event_type, status="delivered").inc()
            delivered += 1
        return delivered

    def _persist(self, target: NotificationTarget) -> Notification:
        notification = Notification(
            id=self.id_factory(),
            user_id=target.recipient_id,
            message=target.message,
            link=target.link,
            created_at=self.clock(),
        )
        try:
            self.store.put(NOTIFICATIONS_COLLECTION, notification.id, notification.to_dict())
        except Exception as e:
            raise NotificationDeliveryError(str(e)) from e
        return notification

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        docs = self.store.list(
            NOTIFICATIONS_COLLECTION,
            lambda d: d.get("user_id") == user_id and (not unread_only or not d.get("is_read")),
        )
        return _newest_first(Notification.from_dict(d) for d in docs)

    def unread_count(self, user_id: str) -> int:
        return len(self.list_for_user(user_id, unread_only=True))

    def _owned(self, actor: IdentityFacts, notification_id: str) -> Notification:
        data = self.store.get(NOTIFICATIONS_COLLECTION, notification_id)
        if data is None:
            raise NotFoundError("Notification", notification_id)
        notification = Notification.from_dict(data)
        if notification.user_id != actor.id:
            raise UnauthorizedError("You can only manage your own notifications")
        return notification

    def mark_as_read(self, actor: IdentityFacts, notification_id: str) -> Notification:
        self._owned(actor, notification_id)
        updated = self.store.patch(NOTIFICATIONS_COLLECTION, notification_id, {"is_read": True})
        return Notification.from_dict(updated)

    def mark_all_as_read(self, actor: IdentityFacts) -> int:
        """Mark every unread notification of the actor, in chunked batches."""
        unread = self.list_for_user(actor.id, unread_only=True)
        ops = [BatchOp.patch(NOTIFICATIONS_COLLECTION, n.id, {"is_read": True}) for n in unread]
        return len(commit_in_chunks(self.store, ops, self.batch_max_size))

    def delete(self, actor: IdentityFacts, notification_id: str) -> None:
        self._owned(actor, notification_id)
        self.store.delete(NOTIFICATIONS_COLLECTION, notification_id)

    def delete_all(self, actor: IdentityFacts) -> int:
        ops = [
            BatchOp.delete(NOTIFICATIONS_COLLECTION, n.id)
            for n in self.list_for_user(actor.id)
        ]
        return len(commit_in_chunks(self.store, ops, self.batch_max_size))

    def subscribe(
        self,
        user_id: str,
        callback: Callable[[List[Notification]], None],
    ) -> Subscription:
        """Push the user's inbox (newest first) now and after every change."""
        return self.store.subscribe(
            NOTIFICATIONS_COLLECTION,
            lambda d: d.get("user_id") == user_id,
            lambda docs: callback(_newest_first(Notification.from_dict(d) for d in docs)),
        )
