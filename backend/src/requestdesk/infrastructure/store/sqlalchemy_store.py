"""SQL-backed record store.

Documents live as JSON in the ``record_document`` table keyed by
(collection, id). Patches lock the row (SELECT ... FOR UPDATE on PostgreSQL),
apply field transforms to the stored JSON inside the transaction and commit,
so concurrent appends to the same array are serialized instead of lost.

Subscriptions are fanned out in-process after commit; writers in other
processes are not observed.
"""

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ...database import session_scope
from ...domain.errors import NotFoundError
from ...domain.ports.store import (
    BatchOp,
    BatchOpKind,
    Document,
    Predicate,
    SnapshotCallback,
    StorePort,
    Subscription,
    apply_changes,
)
from ...models.record_document import RecordDocument
from .subscriptions import SubscriptionRegistry

logger = logging.getLogger(__name__)


class SqlAlchemyStore(StorePort):
    """StorePort over a SQLAlchemy session factory.

    Args:
        session_factory: sessionmaker bound to the target engine
        max_batch_size: Largest accepted atomic batch
    """

    def __init__(self, session_factory: sessionmaker, max_batch_size: int = 500):
        self.session_factory = session_factory
        self.max_batch_size = max_batch_size
        self._subscriptions = SubscriptionRegistry(self.list)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with session_scope(self.session_factory) as session:
            row = session.get(RecordDocument, (collection, doc_id))
            return dict(row.data) if row else None

    def list(self, collection: str, predicate: Optional[Predicate] = None) -> List[Document]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(RecordDocument).where(RecordDocument.collection == collection)
            ).scalars().all()
            docs = [dict(row.data) for row in rows]
        if predicate is None:
            return docs
        return [d for d in docs if predicate(d)]

    def put(self, collection: str, doc_id: str, data: Document) -> None:
        with session_scope(self.session_factory) as session:
            self._put_row(session, collection, doc_id, data)
        self._subscriptions.notify([collection])

    def patch(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Document:
        with session_scope(self.session_factory) as session:
            updated = self._patch_row(session, collection, doc_id, changes)
        self._subscriptions.notify([collection])
        return updated

    def delete(self, collection: str, doc_id: str) -> bool:
        with session_scope(self.session_factory) as session:
            row = session.get(RecordDocument, (collection, doc_id))
            if row is None:
                return False
            session.delete(row)
        self._subscriptions.notify([collection])
        return True

    def atomic_batch(self, ops: List[BatchOp]) -> None:
        if len(ops) > self.max_batch_size:
            raise ValueError(
                f"Batch of {len(ops)} ops exceeds the limit of {self.max_batch_size}"
            )

        # One transaction: any failure rolls back every op of the batch
        with session_scope(self.session_factory) as session:
            for op in ops:
                if op.kind == BatchOpKind.PUT:
                    self._put_row(session, op.collection, op.doc_id, dict(op.fields))
                elif op.kind == BatchOpKind.PATCH:
                    self._patch_row(session, op.collection, op.doc_id, op.fields)
                elif op.kind == BatchOpKind.DELETE:
                    row = session.get(RecordDocument, (op.collection, op.doc_id))
                    if row is not None:
                        session.delete(row)
                session.flush()

        logger.debug(f"Committed batch of {len(ops)} op(s)")
        self._subscriptions.notify({op.collection for op in ops})

    def subscribe(
        self,
        collection: str,
        predicate: Optional[Predicate],
        callback: SnapshotCallback,
    ) -> Subscription:
        return self._subscriptions.add(collection, predicate, callback)

    # ------------------------------------------------------------------

    def _put_row(self, session, collection: str, doc_id: str, data: Document) -> None:
        body = {**data, "id": doc_id}
        row = session.get(RecordDocument, (collection, doc_id))
        if row is None:
            session.add(RecordDocument(collection=collection, id=doc_id, data=body))
        else:
            row.data = body

    def _patch_row(self, session, collection: str, doc_id: str, changes) -> Document:
        row = session.execute(
            select(RecordDocument)
            .where(RecordDocument.collection == collection, RecordDocument.id == doc_id)
            .with_for_update()
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError(collection, doc_id)

        updated = apply_changes(row.data, changes)
        # Assign a new object so the JSON column is flagged dirty
        row.data = updated
        return dict(updated)
