"""Pydantic schemas for the password reset API"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..auth.roles import UserRole
from .status import PasswordResetStatus


class PasswordResetCreate(BaseModel):
    """Public form submitted from the sign-in page"""
    role: UserRole
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    admission_number: Optional[str] = Field(None, max_length=50, description="Students only")
    gender: Optional[str] = Field(None, max_length=20, description="Students only")
    designation: Optional[str] = Field(None, max_length=100, description="Staff only")

    model_config = ConfigDict(extra='forbid')


class PasswordResetResponse(BaseModel):
    id: str
    status: PasswordResetStatus
    role: UserRole
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    admission_number: Optional[str] = None
    gender: Optional[str] = None
    designation: Optional[str] = None
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    dashboard_hidden: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PasswordResetSubmitted(BaseModel):
    """Acknowledgement for the anonymous submitter (no record details)"""
    id: str
    status: PasswordResetStatus


class PasswordResetStatusUpdate(BaseModel):
    status: PasswordResetStatus

    model_config = ConfigDict(extra='forbid')
