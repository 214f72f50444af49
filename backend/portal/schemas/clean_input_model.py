from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator


class CleanInputModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    # Optional free-text fields where an empty form value means "no value".
    blank_as_none: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if not cls.blank_as_none or not isinstance(data, dict):
            return data
        return {
            key: None
            if key in cls.blank_as_none and isinstance(value, str) and not value.strip()
            else value
            for key, value in data.items()
        }
