"""Helpers for turning raw input into validated schema objects."""

from typing import Any, TypeVar
from collections.abc import Mapping

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from inventory_ledger.core.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_request(model: type[ModelT], data: Any) -> ModelT:
    """
    Validate ``data`` (a mapping, an object with attributes, or an instance of
    ``model``) and return a ``model`` instance.

    Pydantic errors are reported as a single ValidationError.
    """
    if isinstance(data, model):
        return data
    try:
        if isinstance(data, Mapping):
            return model.model_validate(data)
        return model.model_validate(data, from_attributes=True)
    except PydanticValidationError as exc:
        raise ValidationError(_format_errors(exc)) from exc


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "input"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
