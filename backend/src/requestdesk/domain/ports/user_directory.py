"""User Directory Port - read-only lookup of registered users.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ...users.models import UserProfile


class UserDirectoryPort(ABC):

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserProfile]:
        """Return the user or None if unknown."""

    @abstractmethod
    def super_admin_ids(self) -> List[str]:
        """Ids of all active SUPER_ADMIN users (notification fan-out targets)."""

    @abstractmethod
    def potential_assignees(self) -> List[UserProfile]:
        """Active users a request may be assigned to (ADMIN, STAFF, SUPER_ADMIN)."""
