"""Global FastAPI dependencies.

Services are built once by create_app() and kept on ``app.state``; these
accessors hand them to endpoints so tests can swap in their own instances.
"""

from fastapi import Request

from .config import Settings
from .dashboard.service import DashboardService
from .domain.ports.blob_store import BlobStorePort
from .domain.ports.store import StorePort
from .domain.ports.user_directory import UserDirectoryPort
from .notifications.service import Notifier
from .password_resets.service import PasswordResetService
from .requests.service import RequestService
from .users.service import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> StorePort:
    return request.app.state.store


def get_blob_store(request: Request) -> BlobStorePort:
    return request.app.state.blob_store


def get_user_directory(request: Request) -> UserDirectoryPort:
    return request.app.state.directory


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_request_service(request: Request) -> RequestService:
    return request.app.state.request_service


def get_password_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.password_reset_service


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service
