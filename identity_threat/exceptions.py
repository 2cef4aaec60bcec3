"""Exceptions shared across the toolkit."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError


class InvalidConfiguration(ValueError):
    """A parameter is outside its valid domain.

    Raised at construction time, before any simulation step or model fit runs.
    """


class ValidatedModel(BaseModel):
    """pydantic model whose validation failures surface as InvalidConfiguration."""

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidConfiguration(
                f"Invalid {type(self).__name__}: {e.error_count()} error(s)\n{e}"
            ) from e
