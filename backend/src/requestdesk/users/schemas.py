"""Pydantic schemas for user management endpoints.

Credentials are never part of these schemas; passwords stay with the
identity provider.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..auth.roles import UserRole


class UserCreate(BaseModel):
    """Register the profile of an identity provider account (POST /users)."""
    id: Optional[str] = Field(None, min_length=1, max_length=128, description="Identity provider user id")
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    admission_number: Optional[str] = Field(None, max_length=50, description="Students only")
    gender: Optional[str] = Field(None, max_length=20, description="Students only")
    designation: Optional[str] = Field(None, max_length=100, description="Staff and admins only")
    phone: Optional[str] = Field(None, max_length=50)

    model_config = ConfigDict(extra='forbid')


class UserUpdate(BaseModel):
    """Partial update (PATCH /users/{id}). Omitted fields are left unchanged."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    admission_number: Optional[str] = Field(None, max_length=50)
    gender: Optional[str] = Field(None, max_length=20)
    designation: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    model_config = ConfigDict(extra='forbid')

    @field_validator('first_name', 'last_name')
    @classmethod
    def check_not_blank(cls, v):
        if v is not None and v.strip() == "":
            raise ValueError("Field cannot be blank")
        return v


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    admission_number: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
