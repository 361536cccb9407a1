"""Pydantic schemas for the dashboard API"""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict

from ..password_resets.schemas import PasswordResetResponse
from ..requests.schemas import RequestResponse


class DashboardPanel(str, Enum):
    REQUESTS = "requests"
    PASSWORD_RESETS = "password_resets"


class DashboardStatsResponse(BaseModel):
    total: int
    pending: int
    assigned: int
    completed: int
    action_needed: int

    model_config = ConfigDict(from_attributes=True)


class DashboardResponse(BaseModel):
    stats: DashboardStatsResponse
    recent_requests: List[RequestResponse]
    recent_password_resets: List[PasswordResetResponse]

    model_config = ConfigDict(from_attributes=True)
