"""FastAPI dependencies for authentication.

Usage:
    @router.get("/requests/{request_id}")
    def get_request(request_id: str, actor: IdentityFacts = Depends(get_current_actor)):
        ...
"""

from typing import Callable

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..dependencies import get_user_directory
from ..domain.ports.user_directory import UserDirectoryPort
from .identity import IdentityFacts
from .jwt import decode_token, identity_from_claims
from .roles import UserRole

# HTTP Bearer token security scheme
security = HTTPBearer()


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    directory: UserDirectoryPort = Depends(get_user_directory),
) -> IdentityFacts:
    """Validate the bearer token and return the caller's identity facts.

    Role and names come from the user directory when the user is known there,
    so a role change takes effect without waiting for the token to expire.

    Raises:
        HTTPException 401: Token missing, invalid, expired or user unknown
        HTTPException 403: User is deactivated
    """
    try:
        claims = identity_from_claims(decode_token(credentials.credentials))
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = directory.get_user(claims.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )
    return user.to_identity()


def require_role(*roles: UserRole) -> Callable:
    """Create a dependency that only lets the given roles through.

    Example:
        @router.get("/users")
        def list_users(actor: IdentityFacts = Depends(require_role(UserRole.SUPER_ADMIN))):
            ...

    Raises:
        HTTPException 403: If the actor's role is not one of ``roles``
    """
    allowed = set(roles)

    def role_dependency(actor: IdentityFacts = Depends(get_current_actor)) -> IdentityFacts:
        if actor.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(r.value for r in allowed))}",
            )
        return actor

    return role_dependency
