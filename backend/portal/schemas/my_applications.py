import uuid

from portal.schemas.clean_input_model import CleanInputModel


class MyApplicationCreate(CleanInputModel):
    application_id: uuid.UUID


class ReorderRequest(CleanInputModel):
    ordered_application_ids: list[uuid.UUID]
