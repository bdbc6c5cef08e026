"""Application configuration loaded once at process start.

Every setting comes from the environment; the resulting AppConfig is passed
explicitly to the application factory and the DatabaseManager and is treated
as read-only afterwards.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from helpers.debug_util import VALID_MODES


class AppConfig(BaseModel):
    """Validated application settings."""

    database_url: str = ""
    environment: str = "development"
    debug_mode: str = "quiet"
    auth_header: str = "X-Auth-User-Id"
    schema_name: str = Field(default="kata", pattern=r"^[a-z_][a-z0-9_]*$")
    testing: bool = False

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @field_validator("debug_mode")
    @classmethod
    def validate_debug_mode(cls, v: str) -> str:
        """Only "quiet" and "loud" are meaningful; anything else falls back to quiet."""
        v = v.lower()
        return v if v in VALID_MODES else "quiet"

    @field_validator("auth_header")
    @classmethod
    def validate_auth_header(cls, v: str) -> str:
        """Ensure the auth header name is not blank."""
        if not v.strip():
            raise ValueError("auth_header cannot be blank")
        return v.strip()

    @property
    def is_production(self) -> bool:
        """True when running with KATA_TYPER_ENV=production."""
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build the configuration from environment variables.

        Recognised variables: DATABASE_URL, KATA_TYPER_ENV,
        KATA_TYPER_DEBUG_MODE, KATA_TYPER_AUTH_HEADER, KATA_TYPER_SCHEMA.
        """
        env = os.environ if environ is None else environ
        return cls(
            database_url=env.get("DATABASE_URL", ""),
            environment=env.get("KATA_TYPER_ENV", "development"),
            debug_mode=env.get("KATA_TYPER_DEBUG_MODE", "quiet"),
            auth_header=env.get("KATA_TYPER_AUTH_HEADER", "X-Auth-User-Id"),
            schema_name=env.get("KATA_TYPER_SCHEMA", "kata"),
        )
