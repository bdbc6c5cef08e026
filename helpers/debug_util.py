"""Debug utilities for controlling debug output across the app.

Provides a centralized way to handle debug messages, supporting both quiet mode
(logging only) and loud mode (print to stdout).
"""

import logging
import os
from typing import Optional

DEBUG_MODE_ENV_VAR = "KATA_TYPER_DEBUG_MODE"
VALID_MODES = ("quiet", "loud")


class DebugUtil:
    """Manage debug output based on debug mode setting.

    Supports two modes:
    - "quiet": Debug messages are logged only
    - "loud": Debug messages are printed to stdout
    """

    def __init__(self, mode: Optional[str] = None) -> None:
        """Initialize from an explicit mode or the KATA_TYPER_DEBUG_MODE variable.

        Defaults to "quiet" if neither is set or the value is invalid.
        """
        raw_mode = mode if mode is not None else os.environ.get(DEBUG_MODE_ENV_VAR, "quiet")
        self._mode = raw_mode.lower() if raw_mode.lower() in VALID_MODES else "quiet"
        self._logger = logging.getLogger(self.__class__.__name__)

    def debug_mode(self) -> str:
        """Get the current debug mode ("quiet" or "loud")."""
        return self._mode

    def debugMessage(self, *args: object) -> None:
        """Output a debug message based on the current debug mode.

        In "quiet" mode messages go to the logger at DEBUG level.
        In "loud" mode they are printed to stdout with a [DEBUG] prefix.
        """
        if self._mode == "loud":
            print("[DEBUG]", *args)
            return
        message = " ".join(str(arg) for arg in args)
        if message:
            self._logger.debug(message)

    def set_mode(self, mode: str) -> None:
        """Change the debug mode. Invalid values default to "quiet"."""
        self._mode = mode.lower() if mode.lower() in VALID_MODES else "quiet"

    def is_loud(self) -> bool:
        """Check if debug mode is set to loud."""
        return self._mode == "loud"

    def is_quiet(self) -> bool:
        """Check if debug mode is set to quiet."""
        return self._mode == "quiet"
