"""Shared schema configuration."""

from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case accepted on input."""

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


def as_float(value, places: Optional[int] = 2) -> Optional[float]:
    """Decimal to float for responses; money is rounded to cents."""
    if value is None:
        return None
    if places is None:
        return float(value)
    return round(float(value), places)
