"""UserService - user profile management (SUPER_ADMIN only).

Profiles live in the ``users`` collection. Credentials stay with the identity
provider: a profile is registered under the id the provider issued, and the
JWT ``sub`` of that user must match it.

Super admin accounts are managed through seeding, not through this service:
they cannot be created, edited or deleted here, and nobody can be promoted to
SUPER_ADMIN.
"""

import dataclasses
import logging
import uuid
from typing import Any, Dict, List, Optional

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole
from ..domain.errors import AlreadyExistsError, NotFoundError, UnauthorizedError
from ..domain.ports.store import StorePort
from .directory import StoreUserDirectory
from .models import USERS_COLLECTION, UserProfile

logger = logging.getLogger(__name__)

# Fields a super admin may change on an existing profile
EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "role",
    "admission_number",
    "designation",
    "phone",
    "gender",
    "is_active",
)


def new_user_id() -> str:
    return uuid.uuid4().hex


class UserService:

    def __init__(self, store: StorePort, directory: Optional[StoreUserDirectory] = None):
        self.store = store
        self.directory = directory or StoreUserDirectory(store)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_users(self, actor: IdentityFacts, role: Optional[UserRole] = None) -> List[UserProfile]:
        """All profiles sorted by name, optionally for one role.

        Filtering by ADMIN also returns super admins.
        """
        _require_super_admin(actor)
        roles = None
        if role is not None:
            roles = {role.value}
            if role == UserRole.ADMIN:
                roles.add(UserRole.SUPER_ADMIN.value)

        docs = self.store.list(
            USERS_COLLECTION,
            (lambda d: d.get("role") in roles) if roles else None,
        )
        return sorted(
            (UserProfile.from_dict(d) for d in docs),
            key=lambda u: (u.last_name.lower(), u.first_name.lower(), u.id),
        )

    def get_user(self, actor: IdentityFacts, user_id: str) -> UserProfile:
        _require_super_admin(actor)
        return self._load(user_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(
        self,
        actor: IdentityFacts,
        email: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        user_id: Optional[str] = None,
        admission_number: Optional[str] = None,
        designation: Optional[str] = None,
        phone: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> UserProfile:
        """Register a profile for an account of the identity provider.

        Students carry admission number and gender, everyone else a designation.

        Raises:
            UnauthorizedError: Actor is not a super admin, or role is SUPER_ADMIN
            AlreadyExistsError: Id or email already registered
        """
        _require_super_admin(actor)
        if role == UserRole.SUPER_ADMIN:
            raise UnauthorizedError("Super admin accounts cannot be created here")

        user_id = user_id or new_user_id()
        if self.store.get(USERS_COLLECTION, user_id) is not None:
            raise AlreadyExistsError(f"User {user_id} already exists")
        self._check_email_free(email)

        is_student = role == UserRole.STUDENT
        user = UserProfile(
            id=user_id,
            email=email.lower(),
            first_name=first_name,
            last_name=last_name,
            role=role,
            admission_number=admission_number if is_student else None,
            gender=gender if is_student else None,
            designation=None if is_student else designation,
            phone=phone,
        )
        self.directory.save_user(user)
        logger.info(
            f"User {user.id} ({role.value}) created by {actor.id}",
            extra={"user_id": actor.id, "record_id": user.id, "operation": "create_user"},
        )
        return user

    def update_user(self, actor: IdentityFacts, user_id: str, changes: Dict[str, Any]) -> UserProfile:
        """Apply ``changes`` (any of EDITABLE_FIELDS) to a profile.

        Raises:
            UnauthorizedError: Actor is not a super admin, the target is a super
                admin, or the change would promote to SUPER_ADMIN
            NotFoundError: Unknown user
            AlreadyExistsError: New email belongs to another user
            ValueError: Unknown field
        """
        _require_super_admin(actor)
        user = self._load(user_id)
        _require_managed(user)

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

        updates = dict(changes)
        if "role" in updates:
            updates["role"] = UserRole(updates["role"])
            if updates["role"] == UserRole.SUPER_ADMIN:
                raise UnauthorizedError("Users cannot be promoted to super admin")
        if "email" in updates:
            updates["email"] = updates["email"].lower()
            if updates["email"] != user.email:
                self._check_email_free(updates["email"])

        updated = dataclasses.replace(user, **updates)
        if updated == user:
            return user

        self.directory.save_user(updated)
        logger.info(
            f"User {user_id} updated by {actor.id}: {', '.join(sorted(updates))}",
            extra={"user_id": actor.id, "record_id": user_id, "operation": "update_user"},
        )
        return updated

    def delete_user(self, actor: IdentityFacts, user_id: str) -> None:
        """Remove the profile. The user's tokens stop working immediately."""
        _require_super_admin(actor)
        _require_managed(self._load(user_id))
        self.store.delete(USERS_COLLECTION, user_id)
        logger.info(
            f"User {user_id} deleted by {actor.id}",
            extra={"user_id": actor.id, "record_id": user_id, "operation": "delete_user"},
        )

    def seed_super_admin(
        self,
        user_id: str,
        email: str,
        first_name: str = "Super",
        last_name: str = "Admin",
    ) -> UserProfile:
        """Make sure the configured super admin profile exists.

        An existing profile with that id is re-activated and set to
        SUPER_ADMIN; other fields are left as they are.
        """
        data = self.store.get(USERS_COLLECTION, user_id)
        if data is not None:
            existing = UserProfile.from_dict(data)
            if existing.role == UserRole.SUPER_ADMIN and existing.is_active:
                return existing
            user = dataclasses.replace(existing, role=UserRole.SUPER_ADMIN, is_active=True)
        else:
            user = UserProfile(
                id=user_id,
                email=email.lower(),
                first_name=first_name,
                last_name=last_name,
                role=UserRole.SUPER_ADMIN,
                designation="Administration",
            )

        self.directory.save_user(user)
        logger.info(f"Seeded super admin {user_id}", extra={"record_id": user_id, "operation": "seed"})
        return user

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, user_id: str) -> UserProfile:
        data = self.store.get(USERS_COLLECTION, user_id)
        if data is None:
            raise NotFoundError("User", user_id)
        return UserProfile.from_dict(data)

    def _check_email_free(self, email: str) -> None:
        email = email.lower()
        taken = self.store.list(USERS_COLLECTION, lambda d: (d.get("email") or "").lower() == email)
        if taken:
            raise AlreadyExistsError(f"A user with email {email} already exists")


def _require_super_admin(actor: IdentityFacts) -> None:
    if actor.role != UserRole.SUPER_ADMIN:
        raise UnauthorizedError("Only a super admin can manage users")


def _require_managed(user: UserProfile) -> None:
    if user.role == UserRole.SUPER_ADMIN:
        raise UnauthorizedError("Super admin accounts cannot be changed here")
