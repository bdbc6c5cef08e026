"""
Database package for the Kata Typer API.

The DatabaseManager is constructed explicitly by the application factory and
passed to every manager; there is no module-level connection.
"""

from .database_manager import DatabaseManager

__all__ = ["DatabaseManager"]
