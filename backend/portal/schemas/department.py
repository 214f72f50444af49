import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal.schemas.clean_input_model import CleanInputModel


class DepartmentWrite(CleanInputModel):
    name: str = Field(min_length=1, max_length=200)


class DepartmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    created_at: datetime | None = None
