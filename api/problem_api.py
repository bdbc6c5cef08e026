"""Problem catalogue endpoints."""

from flask import Blueprint, jsonify, request

from api.auth import database_error_response, error_response, get_db_manager, require_user
from db.exceptions import DatabaseError
from models.attempt import is_valid_uuid
from models.problem_manager import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ProblemManager,
    ProblemNotFound,
    clamp_page,
)

problem_api = Blueprint("problem_api", __name__, url_prefix="/api/problems")


@problem_api.route("", methods=["GET"])
@require_user
def list_problems():
    """List problems, optionally filtered by ``category``, with limit/offset paging."""
    category = request.args.get("category") or None
    limit, offset = clamp_page(
        request.args.get("limit", type=int),
        request.args.get("offset", type=int),
        DEFAULT_PAGE_SIZE,
        MAX_PAGE_SIZE,
    )
    try:
        problems = ProblemManager(db_manager=get_db_manager()).list_problems(
            category=category, limit=limit, offset=offset
        )
    except DatabaseError as e:
        return database_error_response(e, "fetch problems")
    return jsonify(
        {
            "problems": [p.to_dict() for p in problems],
            "pagination": {"limit": limit, "offset": offset, "total": len(problems)},
        }
    )


@problem_api.route("/<problem_id>", methods=["GET"])
@require_user
def get_problem(problem_id: str):
    """Fetch one problem including its solution code."""
    if not is_valid_uuid(problem_id):
        return error_response("Invalid problem ID format", 400)
    try:
        problem = ProblemManager(db_manager=get_db_manager()).get_problem(problem_id=problem_id)
    except ProblemNotFound:
        return error_response("Problem not found", 404)
    except DatabaseError as e:
        return database_error_response(e, "fetch problem")
    return jsonify({"problem": problem.to_dict()})
