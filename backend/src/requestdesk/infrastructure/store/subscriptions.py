"""In-process fan-out of collection snapshots to subscribers.

Shared by the store implementations. After a write commits, the store calls
``notify`` with the changed collections; every live subscription on those
collections receives a fresh snapshot read through ``fetch``.
"""

import logging
import threading
from typing import Callable, Iterable, List, Optional

from ...domain.ports.store import Document, Predicate, SnapshotCallback, Subscription

logger = logging.getLogger(__name__)

Fetch = Callable[[str, Optional[Predicate]], List[Document]]


class _Listener(Subscription):

    def __init__(self, registry: "SubscriptionRegistry", collection: str, predicate, callback):
        self.registry = registry
        self.collection = collection
        self.predicate = predicate
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self.registry.remove(self)


class SubscriptionRegistry:

    def __init__(self, fetch: Fetch):
        self.fetch = fetch
        self._listeners: List[_Listener] = []
        self._lock = threading.Lock()

    def add(
        self,
        collection: str,
        predicate: Optional[Predicate],
        callback: SnapshotCallback,
    ) -> Subscription:
        """Register a listener and push the current snapshot to it."""
        listener = _Listener(self, collection, predicate, callback)
        with self._lock:
            self._listeners.append(listener)
        self._push(listener)
        return listener

    def remove(self, listener: _Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def notify(self, collections: Iterable[str]) -> None:
        changed = set(collections)
        with self._lock:
            listeners = [l for l in self._listeners if l.collection in changed]
        for listener in listeners:
            self._push(listener)

    def _push(self, listener: _Listener) -> None:
        if not listener.active:
            return
        snapshot = self.fetch(listener.collection, listener.predicate)
        try:
            listener.callback(snapshot)
        except Exception as e:
            # A broken subscriber must not fail the write that triggered it
            logger.error(
                f"Subscription callback failed for {listener.collection}: {e}",
                exc_info=True,
            )
