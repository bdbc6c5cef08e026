"""Attempt session endpoints: start, submit, fetch and analyse attempts."""

import logging

from flask import Blueprint, jsonify, make_response, request
from pydantic import ValidationError

from api.auth import (
    current_user_id,
    database_error_response,
    error_response,
    get_db_manager,
    require_user,
    validation_error_response,
)
from db.exceptions import DatabaseError, ForeignKeyError
from models.attempt import AttemptCreate, AttemptUpdate, is_valid_uuid
from models.attempt_manager import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AttemptManager,
    AttemptNotFound,
)
from models.problem_manager import clamp_page

logger = logging.getLogger(__name__)

attempt_api = Blueprint("attempt_api", __name__, url_prefix="/api/attempts")


def _manager() -> AttemptManager:
    return AttemptManager(db_manager=get_db_manager())


@attempt_api.route("", methods=["POST"])
@require_user
def create_attempt():
    """Start an attempt at ``problemId``."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Problem ID is required", 400)
    try:
        body = AttemptCreate.model_validate(data)
    except ValidationError as e:
        return validation_error_response(e)
    try:
        session = _manager().create_attempt(user_id=current_user_id(), problem_id=body.problem_id)
    except ForeignKeyError:
        return error_response("Problem not found", 404)
    except DatabaseError as e:
        return database_error_response(e, "create attempt session")
    row = session.to_dict()
    return make_response(
        jsonify(
            {
                "sessionId": row["id"],
                "startedAt": row["started_at"],
                "message": "Attempt session created",
            }
        ),
        201,
    )


@attempt_api.route("", methods=["GET"])
@require_user
def list_attempts():
    """The user's attempt history, newest first."""
    limit, offset = clamp_page(
        request.args.get("limit", type=int),
        request.args.get("offset", type=int),
        DEFAULT_PAGE_SIZE,
        MAX_PAGE_SIZE,
    )
    try:
        attempts = _manager().list_attempts(user_id=current_user_id(), limit=limit, offset=offset)
    except DatabaseError as e:
        return database_error_response(e, "fetch attempts")
    return jsonify(
        {
            "attempts": [a.to_dict() for a in attempts],
            "pagination": {"limit": limit, "offset": offset, "total": len(attempts)},
        }
    )


@attempt_api.route("/<session_id>", methods=["PUT"])
@require_user
def update_attempt(session_id: str):
    """Submit the final (or partial) performance snapshot of an attempt."""
    if not is_valid_uuid(session_id):
        return error_response("Invalid session ID format", 400)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Invalid request body", 400)
    try:
        update = AttemptUpdate.model_validate(data)
    except ValidationError as e:
        logger.info("Rejected submission for %s: %d invalid fields", session_id, e.error_count())
        return validation_error_response(e)
    try:
        result = _manager().update_attempt(
            user_id=current_user_id(), session_id=session_id, update=update
        )
    except AttemptNotFound:
        return error_response("Session not found or unauthorized", 404)
    except DatabaseError as e:
        return database_error_response(e, "update attempt session")
    return jsonify(
        {
            "message": "Attempt session updated successfully",
            "result": result.model_dump(by_alias=True),
        }
    )


@attempt_api.route("/<session_id>", methods=["GET"])
@require_user
def get_attempt(session_id: str):
    """One attempt with its problem title and solution code."""
    if not is_valid_uuid(session_id):
        return error_response("Invalid session ID format", 400)
    try:
        session = _manager().get_attempt(user_id=current_user_id(), session_id=session_id)
    except AttemptNotFound:
        return error_response("Session not found", 404)
    except DatabaseError as e:
        return database_error_response(e, "fetch session")
    return jsonify({"session": session.to_dict()})


@attempt_api.route("/<session_id>/analysis", methods=["GET"])
@require_user
def analyze_attempt(session_id: str):
    """Consistency, words per minute and error patterns of the stored keystrokes."""
    if not is_valid_uuid(session_id):
        return error_response("Invalid session ID format", 400)
    try:
        analysis = _manager().analyze_attempt(user_id=current_user_id(), session_id=session_id)
    except AttemptNotFound:
        return error_response("Session not found", 404)
    except DatabaseError as e:
        return database_error_response(e, "analyze session")
    return jsonify({"analysis": analysis.model_dump(by_alias=True)})
