"""Leaderboard endpoint."""

from flask import Blueprint, jsonify, request

from api.auth import (
    current_user_id,
    database_error_response,
    error_response,
    get_db_manager,
    require_user,
)
from db.exceptions import DatabaseError
from models.user_stats_manager import LEADERBOARD_METRICS, UserStatsManager

leaderboard_api = Blueprint("leaderboard_api", __name__, url_prefix="/api/leaderboard")


@leaderboard_api.route("", methods=["GET"])
@require_user
def leaderboard():
    """Top users by ``metric`` (accuracy or speed) plus the caller's own rank."""
    metric = request.args.get("metric", "accuracy")
    if metric not in LEADERBOARD_METRICS:
        return error_response(
            f"Invalid metric. Use one of: {', '.join(LEADERBOARD_METRICS)}", 400
        )
    limit = request.args.get("limit", type=int)
    manager = UserStatsManager(db_manager=get_db_manager())
    try:
        entries = manager.get_leaderboard(metric=metric, limit=limit)
        user_rank = manager.get_user_rank(user_id=current_user_id(), metric=metric)
    except DatabaseError as e:
        return database_error_response(e, "fetch leaderboard")
    return jsonify(
        {
            "metric": metric,
            "leaderboard": [entry.model_dump(by_alias=True) for entry in entries],
            "userRank": user_rank.model_dump(by_alias=True) if user_rank else None,
        }
    )
