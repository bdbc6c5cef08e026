"""User data model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator, model_validator


class User(BaseModel):
    """Local user record mirrored from the identity provider.

    Attributes:
        id: Local UUID, generated when missing.
        auth_id: Identity provider user id (unique).
        email_address: Primary email address, normalized by email-validator.
        username: Optional display handle.
        first_name: Optional first name.
        last_name: Optional last name.
        profile_image_url: Optional avatar URL.
    """

    id: Optional[str] = None
    auth_id: str = Field(..., min_length=1, max_length=255)
    email_address: Optional[str] = None
    username: Optional[str] = Field(default=None, max_length=64)
    first_name: Optional[str] = Field(default=None, max_length=64)
    last_name: Optional[str] = Field(default=None, max_length=64)
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "frozen": True,
    }

    @model_validator(mode="before")
    @classmethod
    def ensure_id(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        """Generate a UUID when ``id`` is missing or None."""
        if isinstance(values, dict):
            values = dict(values)
            if values.get("id") is None:
                values["id"] = str(uuid4())
            else:
                values["id"] = str(values["id"])
        return values

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: Optional[str]) -> Optional[str]:
        """Validate that ``id`` is a UUID string."""
        if v is None:
            return v
        try:
            UUID(v)
        except ValueError as err:
            raise ValueError("id must be a valid UUID string") from err
        return v

    @field_validator("auth_id")
    @classmethod
    def validate_auth_id(cls, v: str) -> str:
        """auth_id must not be blank."""
        if not v.strip():
            raise ValueError("auth_id cannot be blank.")
        return v.strip()

    @field_validator("email_address")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        """Validate and normalize the email address using email-validator."""
        if v is None or not v.strip():
            return None
        try:
            email_info = validate_email(
                v.strip(),
                check_deliverability=False,
                allow_smtputf8=False,
            )
        except EmailNotValidError as e:
            raise ValueError(str(e)) from e
        return email_info.normalized

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain dict representation via Pydantic's `model_dump()`."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "User":
        """Create a `User` from a dict while rejecting unexpected fields."""
        allowed = set(cls.model_fields.keys())
        extra = set(d.keys()) - allowed
        if extra:
            raise ValueError(f"Extra fields not permitted: {extra}")
        return cls(**d)


class IdentityEmail(BaseModel):
    email_address: str

    model_config = {
        "extra": "ignore",
    }


class IdentityUserData(BaseModel):
    """``data`` object of an identity provider user event.

    Only the profile fields the users table mirrors are read; the first
    email address is the primary one.
    """

    id: str = Field(..., min_length=1)
    email_addresses: List[IdentityEmail] = Field(default_factory=list)
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    model_config = {
        "extra": "ignore",
    }

    def to_user(self) -> User:
        """Local `User` for this provider user (a new local id is generated)."""
        return User(
            auth_id=self.id,
            email_address=self.email_addresses[0].email_address if self.email_addresses else None,
            username=self.username or None,
            first_name=self.first_name or None,
            last_name=self.last_name or None,
            profile_image_url=self.profile_image_url or None,
        )
