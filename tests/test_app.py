"""Tests for the application factory."""

from unittest.mock import MagicMock, patch

from app import create_app
from db.database_manager import DatabaseManager
from helpers.app_config import AppConfig


def test_injected_manager_is_shared(mock_db_manager) -> None:
    config = AppConfig(testing=True)
    app = create_app(config, db_manager=mock_db_manager)
    assert app.config["DB_MANAGER"] is mock_db_manager
    assert app.config["APP_CONFIG"] is config
    assert app.config["TESTING"] is True
    mock_db_manager.init_tables.assert_not_called()


def test_blueprints_registered(app) -> None:
    assert {
        "problem_api",
        "attempt_api",
        "user_api",
        "leaderboard_api",
        "user_sync_api",
    } <= set(app.blueprints)
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    assert "/api/attempts/<session_id>/analysis" in rules
    assert "/api/health" in rules
    assert "/api/webhooks/users" in rules


def test_manager_built_from_config_and_schema_initialised() -> None:
    config = AppConfig(database_url="postgresql://kata@localhost/kata")
    manager = MagicMock(spec=DatabaseManager)
    with patch("app.DatabaseManager.from_config", return_value=manager) as from_config:
        app = create_app(config)
    from_config.assert_called_once_with(config)
    manager.init_tables.assert_called_once_with()
    assert app.config["DB_MANAGER"] is manager
