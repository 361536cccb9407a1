"""User roles and permission sets for RequestDesk.

Roles are NOT a strict hierarchy: ADMIN and STAFF are peers, SUPER_ADMIN is a
superset of both. Permissions are therefore expressed as explicit role sets
per operation rather than by rank.

Permission Matrix:
┌──────────────────────────┬─────────────┬───────┬───────┬─────────┐
│ Action                   │ SUPER_ADMIN │ ADMIN │ STAFF │ STUDENT │
├──────────────────────────┼─────────────┼───────┼───────┼─────────┤
│ Create document request  │             │       │       │    ✓    │
│ Assign request           │      ✓      │       │       │         │
│ Set expected date        │      ✓      │       │       │         │
│ Change status (manual)   │      ✓      │   ✓   │   ✓   │         │
│ Upload attachment        │      ✓      │   ✓   │   ✓   │         │
│ Approve/reject document  │      ✓      │       │       │         │
│ Internal/direct comments │      ✓      │   ✓   │   ✓   │         │
│ Hard delete records      │      ✓      │       │       │         │
│ Soft delete (hide)       │             │   ✓   │   ✓   │    ✓    │
└──────────────────────────┴─────────────┴───────┴───────┴─────────┘
"""

from enum import Enum
from typing import FrozenSet


class UserRole(str, Enum):
    """User roles in RequestDesk.

    Values are stored as TEXT and must match exactly.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    STUDENT = "STUDENT"


# Roles that can manage (process) requests
MANAGER_ROLES: FrozenSet[UserRole] = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.STAFF}
)

# Roles that only see records assigned to them
ASSIGNEE_SCOPED_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.STAFF})

# Roles a request can be assigned to
ASSIGNABLE_ROLES: FrozenSet[UserRole] = MANAGER_ROLES


def is_manager(role: UserRole) -> bool:
    """Check if a role can manage requests (upload, change status, staff comments).

    Examples:
        >>> is_manager(UserRole.STAFF)
        True
        >>> is_manager(UserRole.STUDENT)
        False
    """
    return role in MANAGER_ROLES


def is_super_admin(role: UserRole) -> bool:
    return role == UserRole.SUPER_ADMIN
