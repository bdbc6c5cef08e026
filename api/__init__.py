"""Flask blueprints for the Kata Typer JSON API."""

from api.attempt_api import attempt_api
from api.leaderboard_api import leaderboard_api
from api.problem_api import problem_api
from api.user_api import user_api
from api.user_sync_api import user_sync_api

BLUEPRINTS = [problem_api, attempt_api, user_api, leaderboard_api, user_sync_api]

__all__ = [
    "BLUEPRINTS",
    "attempt_api",
    "leaderboard_api",
    "problem_api",
    "user_api",
    "user_sync_api",
]
