"""Keystroke event model for tracking keystrokes during practice sessions."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class KeystrokeEvent(BaseModel):
    """One typed character with its correctness and timing.

    Attributes are snake_case in Python and camelCase on the wire
    (``characterPosition``, ``typedCharacter`` ...). Every field is required
    when an event is parsed from a request body.
    """

    character_position: int = Field(
        ..., ge=0, strict=True, description="Offset into the target text at time of typing"
    )
    typed_character: str = Field(..., strict=True)
    expected_character: Optional[str] = Field(
        ..., strict=True, description="None when the position is past the end of the target"
    )
    is_correct: bool = Field(..., strict=True)
    timestamp_ms: int = Field(..., strict=True, description="Wall-clock time of the keystroke")
    time_since_last_keystroke_ms: int = Field(
        ..., strict=True, description="Delta from the previous keystroke or from session start"
    )

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
        "frozen": True,
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeystrokeEvent":
        """Create an event from a stored row (snake_case) or a wire dict (camelCase)."""
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire shape."""
        return self.model_dump(by_alias=True)
