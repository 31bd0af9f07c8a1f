from typing import Dict
from pydantic import ValidationError

_REQUIRED_TYPES = {"missing", "string_type", "int_type", "enum"}


def validation_errors(exc: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic error into ``{field: message}`` for form templates."""
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "__all__"
        if field in errors:
            continue
        message = err.get("msg", "Invalid value")
        if err.get("type") in _REQUIRED_TYPES and err.get("input") is None:
            message = "This field is required."
        elif message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors[field] = message
    return errors
