"""In-process record store.

Thread-safe implementation of StorePort used for local development and the
test-suite. Documents are deep-copied on the way in and out so callers can
never mutate stored state by accident.

Subscriptions are pushed synchronously on the writing thread, after the lock
is released, with the full matching set of the changed collection.
"""

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional

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
from .subscriptions import SubscriptionRegistry


class MemoryStore(StorePort):
    """Dict-of-dicts store guarded by a re-entrant lock.

    Args:
        max_batch_size: Largest accepted atomic batch
    """

    def __init__(self, max_batch_size: int = 500):
        self.max_batch_size = max_batch_size
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()
        self._subscriptions = SubscriptionRegistry(self.list)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def list(self, collection: str, predicate: Optional[Predicate] = None) -> List[Document]:
        with self._lock:
            docs = [copy.deepcopy(d) for d in self._collections.get(collection, {}).values()]
        if predicate is None:
            return docs
        return [d for d in docs if predicate(d)]

    def put(self, collection: str, doc_id: str, data: Document) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = {**copy.deepcopy(data), "id": doc_id}
        self._subscriptions.notify([collection])

    def patch(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Document:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise NotFoundError(collection, doc_id)
            updated = apply_changes(docs[doc_id], changes)
            docs[doc_id] = updated
            result = copy.deepcopy(updated)
        self._subscriptions.notify([collection])
        return result

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            existed = self._collections.get(collection, {}).pop(doc_id, None) is not None
        if existed:
            self._subscriptions.notify([collection])
        return existed

    def atomic_batch(self, ops: List[BatchOp]) -> None:
        if len(ops) > self.max_batch_size:
            raise ValueError(
                f"Batch of {len(ops)} ops exceeds the limit of {self.max_batch_size}"
            )

        with self._lock:
            # Stage against shallow copies; apply_changes never mutates its input
            staged = {name: dict(docs) for name, docs in self._collections.items()}
            for op in ops:
                docs = staged.setdefault(op.collection, {})
                if op.kind == BatchOpKind.PUT:
                    docs[op.doc_id] = {**copy.deepcopy(dict(op.fields)), "id": op.doc_id}
                elif op.kind == BatchOpKind.PATCH:
                    if op.doc_id not in docs:
                        raise NotFoundError(op.collection, op.doc_id)
                    docs[op.doc_id] = apply_changes(docs[op.doc_id], op.fields)
                elif op.kind == BatchOpKind.DELETE:
                    docs.pop(op.doc_id, None)
            self._collections = staged

        self._subscriptions.notify(op.collection for op in ops)

    def subscribe(
        self,
        collection: str,
        predicate: Optional[Predicate],
        callback: SnapshotCallback,
    ) -> Subscription:
        return self._subscriptions.add(collection, predicate, callback)
