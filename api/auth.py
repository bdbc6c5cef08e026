"""Request-scoped helpers shared by every blueprint.

The upstream identity layer authenticates the user and forwards its user id in
a trusted header (``AppConfig.auth_header``). ``require_user`` resolves that id
to the local user id and stores it on ``flask.g``.
"""

import functools
import logging
from typing import Any, Callable, Dict, List, TypeVar, cast

from flask import current_app, g, jsonify, make_response, request
from flask.wrappers import Response
from pydantic import ValidationError

from db.database_manager import DatabaseManager
from db.exceptions import DatabaseError
from helpers.app_config import AppConfig
from models.user_manager import UserManager, UserNotFound

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def get_db_manager() -> DatabaseManager:
    """The DatabaseManager created by the application factory."""
    return cast(DatabaseManager, current_app.config["DB_MANAGER"])


def get_app_config() -> AppConfig:
    """The AppConfig the application was created with."""
    return cast(AppConfig, current_app.config["APP_CONFIG"])


def error_response(message: str, status: int, **extra: Any) -> Response:
    """JSON error body ``{"error": message, ...}`` with the given status."""
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    return make_response(jsonify(body), status)


def validation_details(e: ValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into JSON-safe field/message pairs."""
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in e.errors()
    ]


def validation_error_response(e: ValidationError) -> Response:
    """400 response listing every invalid field."""
    return error_response("Invalid request body", 400, details=validation_details(e))


def database_error_response(e: DatabaseError, action: str) -> Response:
    """Log the cause and answer 500 without leaking database details."""
    logger.error("Database error while trying to %s: %s", action, e)
    return error_response(f"Failed to {action}", 500)


def current_user_id() -> str:
    """Local user id set by ``require_user``."""
    return cast(str, g.user_id)


def current_auth_id() -> str:
    """Identity provider user id read by ``require_user``."""
    return cast(str, g.auth_id)


def require_user(view: F) -> F:
    """Reject the request with 401 (no identity) or 404 (unknown user)."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        header = get_app_config().auth_header
        auth_id = request.headers.get(header, "").strip()
        if not auth_id:
            return error_response("Unauthorized", 401)
        g.auth_id = auth_id
        try:
            g.user_id = UserManager(db_manager=get_db_manager()).get_user_id_by_auth_id(
                auth_id=auth_id
            )
        except UserNotFound:
            return error_response("User not found", 404)
        except DatabaseError as e:
            return database_error_response(e, "resolve user")
        return view(*args, **kwargs)

    return cast(F, wrapper)
