"""Store-backed user directory.

Reads user profiles from the ``users`` collection of the record store. User
registration and credentials live with the identity provider; this module only
resolves ids, roles and names.
"""

import logging
from typing import List, Optional

from ..auth.roles import ASSIGNABLE_ROLES, UserRole
from ..domain.ports.store import StorePort
from ..domain.ports.user_directory import UserDirectoryPort
from .models import USERS_COLLECTION, UserProfile

logger = logging.getLogger(__name__)


class StoreUserDirectory(UserDirectoryPort):

    def __init__(self, store: StorePort):
        self.store = store

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        data = self.store.get(USERS_COLLECTION, user_id)
        return UserProfile.from_dict(data) if data else None

    def super_admin_ids(self) -> List[str]:
        docs = self.store.list(
            USERS_COLLECTION,
            lambda d: d.get("role") == UserRole.SUPER_ADMIN.value and d.get("is_active", True),
        )
        return sorted(d["id"] for d in docs)

    def potential_assignees(self) -> List[UserProfile]:
        roles = {role.value for role in ASSIGNABLE_ROLES}
        docs = self.store.list(
            USERS_COLLECTION,
            lambda d: d.get("role") in roles and d.get("is_active", True),
        )
        return sorted(
            (UserProfile.from_dict(d) for d in docs),
            key=lambda u: (u.last_name.lower(), u.first_name.lower(), u.id),
        )

    def save_user(self, user: UserProfile) -> None:
        """Register or update a profile."""
        self.store.put(USERS_COLLECTION, user.id, user.to_dict())
        logger.info(f"Saved user profile {user.id}", extra={"user_id": user.id})
