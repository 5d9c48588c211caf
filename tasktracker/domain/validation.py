"""Schema validation entry point used by the store and the services."""
from __future__ import annotations

from typing import Any, Type

from pydantic import BaseModel, ValidationError

from tasktracker.core.errors import ValidationFailedError


def field_errors(exc: ValidationError) -> list[dict]:
    """Flatten a pydantic error into ``{field, message}`` entries."""
    return [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]


def validate(schema: Type[BaseModel], data: Any, *, partial: bool = False) -> dict:
    """
    Validate ``data`` against ``schema`` and return it as a camelCase dict.

    With ``partial=True`` only the fields actually supplied (and not null) are
    returned, which is what the update operations merge over an entity.
    Raises ValidationFailedError listing every field problem.
    """
    try:
        model = schema.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailedError("Validation failed", field_errors(exc)) from exc
    return model.model_dump(by_alias=True, exclude_unset=partial, exclude_none=partial)
