"""Chunked, sequential commit of bulk operations.

Stores cap the number of mutations in one atomic batch. Bulk operations are
split into chunks of at most ``max_size`` ops and committed one after the
other. A failing chunk stops the run; chunks committed before it stay
committed and the caller learns exactly which ids were applied.
"""

import logging
from typing import Iterator, List, Sequence, TypeVar

from ..domain.errors import PartialBatchFailureError
from ..domain.ports.store import BatchOp, StorePort
from ..observability.metrics import batch_chunks_total

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunk(items: Sequence[T], max_size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``max_size`` items.

    Example:
        >>> list(chunk([1, 2, 3, 4, 5], 2))
        [[1, 2], [3, 4], [5]]
    """
    if max_size < 1:
        raise ValueError("max_size must be >= 1")
    for start in range(0, len(items), max_size):
        yield list(items[start:start + max_size])


def commit_in_chunks(store: StorePort, ops: Sequence[BatchOp], max_size: int) -> List[str]:
    """Commit ``ops`` in sequential atomic batches.

    Args:
        store: Target store
        ops: Operations to apply
        max_size: Largest chunk; clamped to the store's own batch ceiling

    Returns:
        Ids of all documents touched, in commit order

    Raises:
        PartialBatchFailureError: If a chunk fails; carries applied and
            remaining ids
    """
    size = min(max_size, store.max_batch_size)
    applied: List[str] = []

    for index, batch in enumerate(chunk(ops, size)):
        try:
            store.atomic_batch(batch)
        except Exception as e:
            batch_chunks_total.labels(outcome="failed").inc()
            remaining = [op.doc_id for op in ops[len(applied):]]
            logger.error(
                f"Bulk operation failed at chunk {index}: {e}",
                extra={"applied": len(applied), "remaining": len(remaining)},
            )
            raise PartialBatchFailureError(applied, remaining, cause=e) from e

        batch_chunks_total.labels(outcome="committed").inc()
        applied.extend(op.doc_id for op in batch)

    if ops:
        logger.info(f"Bulk operation committed {len(applied)} op(s)", extra={"chunk_size": size})
    return applied
