"""Tests for the problem endpoints."""

import uuid
from unittest.mock import patch

import pytest

from db.exceptions import DatabaseError
from models.problem import Problem
from models.problem_manager import ProblemNotFound


@pytest.fixture
def problem_manager():
    with patch("api.problem_api.ProblemManager") as manager_cls:
        yield manager_cls.return_value


def make_problem(**overrides) -> Problem:
    data = {"id": str(uuid.uuid4()), "title": "FizzBuzz", "category": "basics"}
    data.update(overrides)
    return Problem(**data)


def test_list_problems(client, signed_in, auth_headers, problem_manager) -> None:
    problem_manager.list_problems.return_value = [make_problem(), make_problem(title="Reverse")]

    response = client.get("/api/problems?category=basics&limit=500&offset=-3", headers=auth_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert [p["title"] for p in body["problems"]] == ["FizzBuzz", "Reverse"]
    assert body["pagination"] == {"limit": 100, "offset": 0, "total": 2}
    problem_manager.list_problems.assert_called_once_with(category="basics", limit=100, offset=0)


def test_list_problems_database_error(client, signed_in, auth_headers, problem_manager) -> None:
    problem_manager.list_problems.side_effect = DatabaseError("relation missing")
    response = client.get("/api/problems", headers=auth_headers)
    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to fetch problems"}


def test_get_problem(client, signed_in, auth_headers, problem_manager) -> None:
    problem = make_problem(solution_code="console.log(1)")
    problem_manager.get_problem.return_value = problem

    response = client.get(f"/api/problems/{problem.id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.get_json()["problem"]["solution_code"] == "console.log(1)"


def test_get_problem_bad_uuid(client, signed_in, auth_headers, problem_manager) -> None:
    response = client.get("/api/problems/not-a-uuid", headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid problem ID format"
    problem_manager.get_problem.assert_not_called()


def test_get_problem_not_found(client, signed_in, auth_headers, problem_manager) -> None:
    problem_manager.get_problem.side_effect = ProblemNotFound()
    response = client.get(f"/api/problems/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == 404
