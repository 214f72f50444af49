"""Application directory SQLAlchemy models package."""

from portal.models.application import Application, ApplicationDepartment, AuthType
from portal.models.application_request import (
    ApplicationRequest,
    ApplicationRequestDepartment,
    RequestStatus,
)
from portal.models.department import Department
from portal.models.user import User
from portal.models.user_application_list import UserApplicationListEntry
from portal.models.user_favorite import UserFavorite

__all__ = [
    "Application",
    "ApplicationDepartment",
    "ApplicationRequest",
    "ApplicationRequestDepartment",
    "AuthType",
    "Department",
    "RequestStatus",
    "User",
    "UserApplicationListEntry",
    "UserFavorite",
]
