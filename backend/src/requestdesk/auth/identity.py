"""Read-only snapshot of the acting user."""

from dataclasses import dataclass
from typing import Optional

from .roles import UserRole


@dataclass(frozen=True)
class IdentityFacts:
    """Trusted identity of the actor performing an operation.

    Resolved by the identity provider (JWT claims) before the engine is
    invoked. The engine never looks credentials up itself.

    Attributes:
        id: User id
        role: User role
        first_name: Given name (used for legacy attachment ownership matching)
        last_name: Family name
        email: Email address (used to scope password reset requests)
        admission_number: Students only, prefix of generated request ids
    """
    id: str
    role: UserRole
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    admission_number: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
