"""Helper utilities for the Kata Typer application.

This package contains configuration loading and debug output helpers that are
used across the application.
"""

from .app_config import AppConfig  # noqa: F401
from .debug_util import DebugUtil  # noqa: F401
