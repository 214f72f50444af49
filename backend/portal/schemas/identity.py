from pydantic import BaseModel


class Identity(BaseModel):
    email: str
    name: str | None = None
    is_admin: bool = False
