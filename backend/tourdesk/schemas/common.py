"""Response envelopes shared across resources."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ResourceList(BaseModel):
    """A page of projected rows plus the number of rows matching the filters."""

    results: int
    total: int
    data: list[dict[str, Any]]
