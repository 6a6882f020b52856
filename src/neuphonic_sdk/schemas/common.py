"""Success/error envelope parsing shared by all REST resources."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

T = TypeVar("T", bound=BaseModel)


class DataEnvelope(BaseModel, Generic[T]):
    """Successful response: ``{"data": ...}``."""

    data: T


class ErrorEnvelope(BaseModel):
    """Failed response: ``{"detail": "..."}`` or a list of validation details."""

    detail: Union[str, list[dict[str, Any]]]


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T


@dataclass(frozen=True)
class Err:
    detail: Union[str, list[dict[str, Any]]]

    def matches(self, pattern: str) -> bool:
        """Return True when the detail is a message matching ``pattern``."""

        return isinstance(self.detail, str) and re.search(pattern, self.detail) is not None

    @property
    def message(self) -> str:
        return self.detail if isinstance(self.detail, str) else str(self.detail)


Envelope = Union[Ok[T], Err]


@lru_cache(maxsize=None)
def _adapter(model: type[BaseModel]) -> TypeAdapter[Any]:
    return TypeAdapter(Union[DataEnvelope[model], ErrorEnvelope])  # type: ignore[valid-type]


def parse_envelope(payload: Any, model: type[T]) -> Ok[T] | Err | None:
    """Validate ``payload`` as a success or error envelope.

    Returns ``None`` when it matches neither shape, which callers report as an
    unknown error for the operation at hand.
    """

    try:
        parsed = _adapter(model).validate_python(payload)
    except ValidationError:
        return None
    if isinstance(parsed, ErrorEnvelope):
        return Err(parsed.detail)
    return Ok(parsed.data)


__all__ = ["DataEnvelope", "Envelope", "Err", "ErrorEnvelope", "Ok", "parse_envelope"]
