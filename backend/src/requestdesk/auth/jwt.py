"""JWT token generation and validation

Access tokens carry the identity facts the engine needs, so requests can be
authorized without a directory lookup for the claims themselves.

JWT Token Claims:
- sub: User id
- role: "SUPER_ADMIN" | "ADMIN" | "STAFF" | "STUDENT"
- first_name / last_name: Display name parts
- email: User email (scopes password reset requests)
- admission_number: Students only
- iat / exp: Issued-at and expiry (iat + JWT_EXPIRY_MINUTES)

Security Properties:
- Algorithm: HS256 (HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET environment variable
- No refresh tokens (re-login after expiry)
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from .identity import IdentityFacts
from .roles import UserRole

ALGORITHM = "HS256"


def _get_jwt_secret() -> str:
    """Raises ValueError if JWT_SECRET is not set."""
    secret = os.getenv('JWT_SECRET')
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def _get_jwt_expiry_minutes() -> int:
    expiry = os.getenv('JWT_EXPIRY_MINUTES', '60')
    try:
        return int(expiry)
    except ValueError:
        return 60


def create_access_token(identity: IdentityFacts) -> str:
    """Create a signed access token for an authenticated user.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=_get_jwt_expiry_minutes())

    payload = {
        'sub': identity.id,
        'role': identity.role.value,
        'first_name': identity.first_name,
        'last_name': identity.last_name,
        'email': identity.email,
        'admission_number': identity.admission_number,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")


def identity_from_claims(payload: Dict[str, Any]) -> IdentityFacts:
    """Build IdentityFacts from decoded claims.

    Raises:
        ValueError: If sub or role is missing or the role is unknown
    """
    user_id = payload.get('sub')
    if not user_id:
        raise ValueError("missing user ID claim")
    return IdentityFacts(
        id=user_id,
        role=UserRole(payload.get('role')),
        first_name=payload.get('first_name') or "",
        last_name=payload.get('last_name') or "",
        email=payload.get('email'),
        admission_number=payload.get('admission_number'),
    )
