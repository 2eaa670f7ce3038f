"""Common models shared across resources."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict

# The cluster manager sends timestamps with up to nanosecond precision
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


class ConsoleModel(BaseModel):
    """Base model for all wire models.

    Fields use snake_case names and the cluster manager's PascalCase keys
    as aliases.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


def trim_timestamp(value: Any) -> Any:
    """Truncate sub-microsecond digits from an RFC 3339 string."""
    if isinstance(value, str):
        return _EXTRA_FRACTION.sub(r"\1", value)
    return value
