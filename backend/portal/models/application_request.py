import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.db.base import Base
from portal.models.application import AuthType, auth_type_enum

if TYPE_CHECKING:
    from portal.models.department import Department
    from portal.models.user import User


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ApplicationRequest(Base):
    __tablename__ = "application_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    auth_type: Mapped[AuthType] = mapped_column(auth_type_enum, nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status"),
        nullable=False,
        server_default=RequestStatus.pending.value,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    requester: Mapped["User"] = relationship()
    departments: Mapped[list["Department"]] = relationship(
        secondary="application_request_departments",
        order_by="Department.name",
        viewonly=True,
    )

    __table_args__ = (
        Index("ix_application_requests_requested_by", "requested_by"),
        Index("ix_application_requests_status", "status"),
    )


class ApplicationRequestDepartment(Base):
    __tablename__ = "application_request_departments"

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("application_requests.id", ondelete="CASCADE"),
        primary_key=True,
    )
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="CASCADE"),
        primary_key=True,
    )
