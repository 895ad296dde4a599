"""Helpers to turn raw payloads into typed contracts."""
from __future__ import annotations

from typing import Any, TypeVar

import pydantic

from .errors import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)


def coerce(model: type[M], data: Any) -> M:
    """Return data as an instance of model, raising the domain ValidationError on failure."""
    if isinstance(data, model):
        return data
    if isinstance(data, pydantic.BaseModel):
        data = data.model_dump(by_alias=True, exclude_unset=True)
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        details = exc.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError("Invalid Body", errors=details) from exc


def coerce_list(model: type[M], data: Any) -> list[M]:
    if not isinstance(data, (list, tuple)):
        raise ValidationError("Invalid Body: expected a list")
    return [coerce(model, item) for item in data]
