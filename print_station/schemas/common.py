"""Shared schema base and the success envelope."""
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def check_name(v: str | None, min_len: int = 2, max_len: int = 100) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not (min_len <= len(v) <= max_len):
        raise ValueError(f"must be between {min_len} and {max_len} characters")
    return v


def check_password(v: str | None) -> str | None:
    if v is not None and len(v) < 6:
        raise ValueError("Password must be at least 6 characters long")
    return v
