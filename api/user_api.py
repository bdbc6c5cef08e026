"""Per-user endpoints: recent attempts, statistics, progress, achievements and profile."""

from flask import Blueprint, jsonify, request

from api.auth import (
    current_auth_id,
    current_user_id,
    database_error_response,
    error_response,
    get_db_manager,
    require_user,
)
from db.exceptions import DatabaseError
from models.attempt_manager import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, AttemptManager
from models.problem_manager import clamp_page
from models.user_manager import UserManager, UserNotFound
from models.user_stats_manager import UserStatsManager

user_api = Blueprint("user_api", __name__, url_prefix="/api/user")


@user_api.route("/attempts", methods=["GET"])
@require_user
def recent_attempts():
    """Recent attempts including the problem id, for the dashboard."""
    limit, offset = clamp_page(
        request.args.get("limit", type=int),
        request.args.get("offset", type=int),
        DEFAULT_PAGE_SIZE,
        MAX_PAGE_SIZE,
    )
    try:
        attempts = AttemptManager(db_manager=get_db_manager()).list_attempts(
            user_id=current_user_id(), limit=limit, offset=offset
        )
    except DatabaseError as e:
        return database_error_response(e, "fetch user attempts")
    return jsonify(
        {
            "attempts": [a.to_dict() for a in attempts],
            "pagination": {"limit": limit, "offset": offset, "total": len(attempts)},
        }
    )


@user_api.route("/stats", methods=["GET"])
@require_user
def user_stats():
    """Streak, progress totals, recent trends and achievement totals."""
    try:
        stats = UserStatsManager(db_manager=get_db_manager()).get_user_stats(
            user_id=current_user_id()
        )
    except DatabaseError as e:
        return database_error_response(e, "fetch user stats")
    return jsonify({"stats": stats.model_dump(mode="json", by_alias=True)})


@user_api.route("/achievements", methods=["GET"])
@require_user
def user_achievements():
    """The achievement catalogue with the user's earned flags."""
    try:
        statuses = UserStatsManager(db_manager=get_db_manager()).get_achievements(
            user_id=current_user_id()
        )
    except DatabaseError as e:
        return database_error_response(e, "fetch achievements")
    earned_points = sum(s.achievement.points for s in statuses if s.earned)
    return jsonify(
        {
            "achievements": [s.model_dump(mode="json", by_alias=True) for s in statuses],
            "totalPoints": earned_points,
        }
    )


@user_api.route("/progress", methods=["GET"])
@require_user
def problem_progress():
    """Per-problem best results with mastery levels."""
    try:
        progress = UserStatsManager(db_manager=get_db_manager()).get_problem_progress(
            user_id=current_user_id()
        )
    except DatabaseError as e:
        return database_error_response(e, "fetch progress")
    return jsonify({"progress": [p.model_dump(mode="json", by_alias=True) for p in progress]})


@user_api.route("/profile", methods=["GET"])
@require_user
def profile():
    """The local profile mirrored from the identity provider."""
    try:
        user = UserManager(db_manager=get_db_manager()).get_user_by_auth_id(
            auth_id=current_auth_id()
        )
    except UserNotFound:
        return error_response("User not found", 404)
    except DatabaseError as e:
        return database_error_response(e, "fetch profile")
    return jsonify({"user": user.model_dump(mode="json")})
