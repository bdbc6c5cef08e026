"""Identity provider webhook: keeps the local users table in step.

The provider posts ``{"type": "user.created" | "user.updated" | "user.deleted",
"data": {...}}``. Verifying the provider's signature is left to the gateway in
front of this service.
"""

import logging

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from api.auth import (
    database_error_response,
    error_response,
    get_db_manager,
    validation_error_response,
)
from db.exceptions import DatabaseError
from models.user import IdentityUserData
from models.user_manager import UserManager

logger = logging.getLogger(__name__)

user_sync_api = Blueprint("user_sync_api", __name__, url_prefix="/api/webhooks")

UPSERT_EVENTS = ("user.created", "user.updated")
DELETE_EVENT = "user.deleted"


@user_sync_api.route("/users", methods=["POST"])
def sync_user():
    """Create, refresh or delete the local user named in a provider event."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        return error_response("Invalid webhook payload", 400)
    event_type = payload["type"]
    data = payload.get("data")
    if not isinstance(data, dict):
        data = {}

    manager = UserManager(db_manager=get_db_manager())
    try:
        if event_type in UPSERT_EVENTS:
            user = IdentityUserData.model_validate(data).to_user()
            manager.upsert_user(user=user)
        elif event_type == DELETE_EVENT:
            auth_id = data.get("id")
            if not auth_id:
                logger.warning("User deleted event without an id")
            elif not manager.delete_user_by_auth_id(auth_id=str(auth_id)):
                logger.info("Deleted user %s was not stored locally", auth_id)
        else:
            logger.info("Unhandled webhook type: %s", event_type)
    except ValidationError as e:
        return validation_error_response(e)
    except DatabaseError as e:
        return database_error_response(e, "sync user")
    return jsonify({"received": True})
