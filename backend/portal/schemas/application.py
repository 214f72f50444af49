import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal.models.application import AuthType
from portal.schemas.clean_input_model import CleanInputModel
from portal.schemas.department import DepartmentRead


class ApplicationCreate(CleanInputModel):
    blank_as_none = ("description", "image_url")

    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    url: str = Field(min_length=1, max_length=500)
    image_url: str | None = Field(default=None, max_length=500)
    auth_type: AuthType
    department_ids: list[uuid.UUID] = Field(default_factory=list)


class ApplicationUpdate(CleanInputModel):
    blank_as_none = ("description", "image_url")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    url: str | None = Field(default=None, min_length=1, max_length=500)
    image_url: str | None = Field(default=None, max_length=500)
    auth_type: AuthType | None = None
    # None leaves the department set untouched; [] clears it.
    department_ids: list[uuid.UUID] | None = None


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    url: str
    image_url: str | None = None
    auth_type: AuthType
    created_at: datetime | None = None
    updated_at: datetime | None = None
    departments: list[DepartmentRead] = Field(default_factory=list)


class ApprovedApplicationRead(ApplicationRead):
    request_approved: bool = True
