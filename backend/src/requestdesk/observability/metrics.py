"""Prometheus metrics for RequestDesk.

Exposed at /metrics by the observability router.
"""

from prometheus_client import Counter

# Lifecycle metrics
transitions_total = Counter(
    "requestdesk_transitions_total",
    "Record transitions applied to the store",
    ["record_kind", "operation"]  # record_kind: DOCUMENT_REQUEST|PASSWORD_RESET
)

transition_conflicts_total = Counter(
    "requestdesk_transition_conflicts_total",
    "Transitions re-decided because the record changed before the write",
    ["operation"]
)

# Notification metrics
notifications_total = Counter(
    "requestdesk_notifications_total",
    "Notifications handed to the notifier",
    ["event_type", "status"]  # status: delivered|failed
)

# Bulk operation metrics
batch_chunks_total = Counter(
    "requestdesk_batch_chunks_total",
    "Atomic batch chunks submitted by bulk operations",
    ["outcome"]  # outcome: committed|failed
)
