"""Per-request correlation id carried through logs.

Stored in a ContextVar so it follows the request across awaits and into
background tasks started from it.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

NO_REQUEST_ID = "no-request-id"


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Current correlation id, or ``no-request-id`` outside of a request."""
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)
