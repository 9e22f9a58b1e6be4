from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator

T = TypeVar("T")


class InputModel(BaseModel):
    """Base for request payloads: blank strings count as "not provided"."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: (None if isinstance(v, str) and not v.strip() else v) for k, v in data.items()}
        return data


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    pageSize: int


class IdOut(BaseModel):
    id: int


class OkOut(BaseModel):
    ok: bool = True
