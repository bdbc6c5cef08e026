"""Fixtures shared by the API tests."""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def signed_in(mock_db_manager: MagicMock, user_id: str) -> str:
    """Make the auth lookup resolve the test auth id to ``user_id``."""
    mock_db_manager.fetchone.return_value = {"id": user_id}
    return user_id
