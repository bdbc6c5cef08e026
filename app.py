"""
Main Flask application for Kata Typer.
Wires configuration, the shared DatabaseManager and the API blueprints.
"""

import argparse
import logging
from typing import List, Optional

from flask import Flask, jsonify

from api import BLUEPRINTS
from db.database_manager import DatabaseManager
from helpers.app_config import AppConfig

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    db_manager: Optional[DatabaseManager] = None,
) -> Flask:
    """Factory to create and configure the Flask app.

    Args:
        config: Application settings; read from the environment when omitted.
        db_manager: Pre-built database manager (tests inject a mock here).
            When omitted one is created from ``config``.
    """
    config = config or AppConfig.from_env()
    app = Flask(__name__)
    app.config["TESTING"] = config.testing
    app.config["APP_CONFIG"] = config

    if db_manager is None:
        db_manager = DatabaseManager.from_config(config)
        # Initialize the schema (safe to call multiple times)
        if not config.testing:
            db_manager.init_tables()
    app.config["DB_MANAGER"] = db_manager

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    logger.info(
        "Kata Typer app created (environment=%s, schema=%s)",
        config.environment,
        config.schema_name,
    )
    return app


def main(argv: Optional[List[str]] = None) -> None:
    """Run the development server."""
    parser = argparse.ArgumentParser(description="Kata Typer API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
