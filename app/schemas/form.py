from typing import Any
from pydantic import BaseModel, model_validator


class FormModel(BaseModel):
    """Base for schemas filled from HTML form posts.

    Browsers send blank inputs as empty strings; those become ``None`` so
    optional numeric and enum fields validate.
    """

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any):
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data
