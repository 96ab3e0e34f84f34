from __future__ import annotations

from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model speaking the practice-management service's camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self, **kwargs: Any) -> dict:
        """Serialize for the wire, leaving unset optional fields out."""

        return self.model_dump(by_alias=True, exclude_none=True, mode="json", **kwargs)


class Page(BaseModel, Generic[T]):
    total: int
    items: List[T] = Field(default_factory=list)
