import uuid

from portal.schemas.clean_input_model import CleanInputModel


class FavoriteCreate(CleanInputModel):
    application_id: uuid.UUID
