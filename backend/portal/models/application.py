import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.db.base import Base

if TYPE_CHECKING:
    from portal.models.department import Department


class AuthType(str, enum.Enum):
    username_password = "username_password"
    sso = "sso"
    api_key = "api_key"
    oauth = "oauth"
    other = "other"


# Shared by applications and application_requests.
auth_type_enum = Enum(AuthType, name="auth_type")


class Application(Base):
    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    auth_type: Mapped[AuthType] = mapped_column(auth_type_enum, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Association rows are written explicitly by the services.
    departments: Mapped[list["Department"]] = relationship(
        secondary="application_departments",
        order_by="Department.name",
        viewonly=True,
    )


class ApplicationDepartment(Base):
    __tablename__ = "application_departments"

    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        primary_key=True,
    )
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="CASCADE"),
        primary_key=True,
    )
