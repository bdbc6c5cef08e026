"""Problem (kata) data model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class Problem(BaseModel):
    """A coding kata whose solution the user types out.

    ``solution_code`` is only loaded when a single problem is fetched; list
    queries leave it unset.
    """

    id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    category: str
    language: str = "javascript"
    solution_code: Optional[str] = None
    estimated_time_minutes: int = Field(default=5, ge=0)
    created_at: Optional[datetime] = None

    model_config = {
        "extra": "ignore",
    }

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: object) -> str:
        return str(v)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Problem":
        """Create a Problem from a DB row."""
        return cls.model_validate(d)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict without unset optional columns."""
        return self.model_dump(mode="json", exclude_none=True)
