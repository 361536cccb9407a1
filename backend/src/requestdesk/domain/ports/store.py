"""Store Port - Domain interface for the shared record store.

The store is the single authoritative place where records live. It offers
last-writer-wins semantics at field granularity, atomic field transforms for
arrays (so concurrent appends are never lost), push subscriptions, and atomic
batches bounded by a backend-specific size limit.

Architecture: Hexagonal - Port interface in domain layer
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..errors import PreconditionFailedError


Document = Dict[str, Any]
Predicate = Callable[[Document], bool]
SnapshotCallback = Callable[[List[Document]], None]


class FieldTransform(ABC):
    """A change to a single field that is computed against the stored value.

    Transforms are applied by the store while it holds the record, so they
    never clobber concurrent changes made to other elements of the same field.
    """

    @abstractmethod
    def apply(self, current: Any) -> Any:
        """Return the new field value given the currently stored one."""


@dataclass(frozen=True)
class ArrayAppend(FieldTransform):
    """Append items to an array field (creates the array when missing)."""
    items: tuple

    def apply(self, current: Any) -> Any:
        return list(current or []) + [copy.deepcopy(item) for item in self.items]


@dataclass(frozen=True)
class ArrayUnion(FieldTransform):
    """Add values to an array field unless they are already present."""
    values: tuple

    def apply(self, current: Any) -> Any:
        result = list(current or [])
        for value in self.values:
            if value not in result:
                result.append(value)
        return result


@dataclass(frozen=True)
class ArrayItemPatch(FieldTransform):
    """Update fields of the array element whose ``key_field`` equals ``key``.

    ``expect`` holds field values the element must still have at write time;
    otherwise PreconditionFailedError is raised and nothing is written.
    """
    key_field: str
    key: Any
    changes: Mapping[str, Any]
    expect: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, current: Any) -> Any:
        result = []
        matched = False
        for item in current or []:
            if isinstance(item, dict) and item.get(self.key_field) == self.key:
                matched = True
                for name, expected in self.expect.items():
                    if item.get(name) != expected:
                        raise PreconditionFailedError(
                            f"Element {self.key} has {name}={item.get(name)!r}, "
                            f"expected {expected!r}"
                        )
                item = {**item, **self.changes}
            result.append(item)
        if not matched:
            raise PreconditionFailedError(f"No element with {self.key_field}={self.key!r}")
        return result


def apply_changes(document: Document, changes: Mapping[str, Any]) -> Document:
    """Apply plain values and FieldTransforms to a copy of ``document``.

    Raises:
        PreconditionFailedError: If any transform's precondition fails
            (the original document is left untouched)
    """
    updated = copy.deepcopy(document)
    for name, value in changes.items():
        if isinstance(value, FieldTransform):
            updated[name] = value.apply(updated.get(name))
        else:
            updated[name] = copy.deepcopy(value)
    return updated


class BatchOpKind(str, Enum):
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass(frozen=True)
class BatchOp:
    """One mutation inside an atomic batch."""
    kind: BatchOpKind
    collection: str
    doc_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def delete(cls, collection: str, doc_id: str) -> "BatchOp":
        return cls(BatchOpKind.DELETE, collection, doc_id)

    @classmethod
    def patch(cls, collection: str, doc_id: str, fields: Mapping[str, Any]) -> "BatchOp":
        return cls(BatchOpKind.PATCH, collection, doc_id, dict(fields))

    @classmethod
    def put(cls, collection: str, doc_id: str, fields: Mapping[str, Any]) -> "BatchOp":
        return cls(BatchOpKind.PUT, collection, doc_id, dict(fields))


class Subscription(ABC):
    """Cancellable handle returned by StorePort.subscribe()."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop receiving snapshots. Idempotent."""


class StorePort(ABC):
    """Port interface for the record store.

    Implementations: MemoryStore (in-process), SqlAlchemyStore (SQL database).

    Key Design Principles:
    - Single-record writes are atomic (patch applies all fields or none)
    - FieldTransforms are evaluated against the stored value at write time
    - subscribe() pushes the full matching set on registration and after
      every change to the collection
    - atomic_batch() applies all ops or none; callers chunk to max_batch_size
    """

    max_batch_size: int = 500

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Return a copy of the document or None if it does not exist."""

    @abstractmethod
    def list(self, collection: str, predicate: Optional[Predicate] = None) -> List[Document]:
        """Return copies of all documents matching the predicate (one-shot read)."""

    @abstractmethod
    def put(self, collection: str, doc_id: str, data: Document) -> None:
        """Create or replace a document."""

    @abstractmethod
    def patch(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Document:
        """Apply field changes atomically and return the stored result.

        Raises:
            NotFoundError: If the document does not exist
            PreconditionFailedError: If a transform precondition fails
        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        predicate: Optional[Predicate],
        callback: SnapshotCallback,
    ) -> Subscription:
        """Register a push subscription for documents matching predicate."""

    @abstractmethod
    def atomic_batch(self, ops: List[BatchOp]) -> None:
        """Apply all ops atomically.

        Raises:
            ValueError: If len(ops) exceeds max_batch_size
            NotFoundError: If a PATCH targets a missing document (nothing applied)
        """
