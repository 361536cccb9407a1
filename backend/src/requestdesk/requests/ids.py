"""Request id generation.

Format: ``{admissionNo}_{seq:03d}_{MMDD}`` where ``seq`` is the 1-based count of
prior requests by that admission number at creation time. Ids are scoped by
admission number, so collisions across different admission numbers cannot
happen; the same student creating requests concurrently may collide and the
store's last write wins.
"""

import re
from datetime import datetime

REQUEST_ID_PATTERN = re.compile(r"^(?P<admission_no>.+)_(?P<seq>\d{3,})_(?P<mmdd>\d{4})$")

UNKNOWN_ADMISSION_NO = "UNKNOWN"


def generate_request_id(admission_no: str, prior_request_count: int, now: datetime) -> str:
    """Build the id for a student's next request.

    Args:
        admission_no: Student admission number (UNKNOWN when missing)
        prior_request_count: Number of requests already stored for this admission number
        now: Creation timestamp

    Example:
        >>> generate_request_id("A123", 0, datetime(2025, 3, 7))
        'A123_001_0307'
    """
    if prior_request_count < 0:
        raise ValueError("prior_request_count must be >= 0")
    admission_no = (admission_no or "").strip() or UNKNOWN_ADMISSION_NO
    return f"{admission_no}_{prior_request_count + 1:03d}_{now.month:02d}{now.day:02d}"
