from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serializes as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def required_name(value: str, max_len: int = 200) -> str:
    name = (value or "").strip()
    if not name or len(name) > max_len:
        raise ValueError(f"name must be 1-{max_len} characters")
    return name
