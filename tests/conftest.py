"""Pytest configuration for the test suite."""

import sys
import uuid
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest
from flask import Flask
from flask.testing import FlaskClient

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from app import create_app
from db.database_manager import DatabaseManager
from helpers.app_config import AppConfig

AUTH_HEADER = "X-Auth-User-Id"
AUTH_ID = "user_2abcDEF"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """A fresh fake clock per test."""
    return FakeClock()


@pytest.fixture
def mock_db_manager() -> MagicMock:
    """DatabaseManager stand-in whose transaction() propagates exceptions."""
    db = MagicMock(spec=DatabaseManager)
    db.fetchone.return_value = None
    db.fetchall.return_value = []
    db.transaction.return_value.__enter__.return_value = db
    db.transaction.return_value.__exit__.return_value = False
    return db


@pytest.fixture
def user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(testing=True, auth_header=AUTH_HEADER)


@pytest.fixture
def app(app_config: AppConfig, mock_db_manager: MagicMock) -> Flask:
    return create_app(app_config, db_manager=mock_db_manager)


@pytest.fixture
def client(app: Flask) -> Generator[FlaskClient, None, None]:
    with app.test_client() as client:
        yield client


@pytest.fixture
def auth_headers() -> dict:
    return {AUTH_HEADER: AUTH_ID}
