"""
tests/test_tasks_routes.py -- Integration tests for the task CRUD routes behind the session gate.

Coverage:
  - Every task route answers 401 without a session
  - Create / list / detail / update / delete happy path
  - Field validation (title, due_date, priority), all failing fields reported together
  - id validation
  - PUT on an unknown id is a 404 even with an invalid body
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import bearer, register_user

TOMORROW = (date.today() + timedelta(days=1)).isoformat()
YESTERDAY = (date.today() - timedelta(days=1)).isoformat()


@pytest.fixture
def auth(client: TestClient) -> dict[str, str]:
    _, token = register_user(client)
    return bearer(token)


def _task(**overrides) -> dict:
    body = {"title": "Write report", "due_date": TOMORROW, "priority": 2, "description": "Quarterly numbers"}
    body.update(overrides)
    return body


class TestTasksRequireSession:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/tasks"),
            ("post", "/api/tasks"),
            ("get", "/api/tasks/1"),
            ("put", "/api/tasks/1"),
            ("delete", "/api/tasks/1"),
        ],
    )
    def test_unauthenticated(self, client: TestClient, method: str, path: str) -> None:
        resp = client.request(method.upper(), path, json=_task() if method in ("post", "put") else None)
        assert resp.status_code == 401

    def test_revoked_token_rejected(self, client: TestClient, auth) -> None:
        assert client.get("/api/tasks", headers=auth).status_code == 200
        client.post("/api/users/logout", headers=auth)
        assert client.get("/api/tasks", headers=auth).status_code == 401


class TestTaskCrud:
    def test_create_and_get(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", json=_task(title="  Write report  "), headers=auth)
        assert resp.status_code == 201, resp.text
        created = resp.json()
        assert created["title"] == "Write report"
        assert created["priority"] == 2
        assert created["created_at"]

        resp = client.get(f"/api/tasks/{created['id']}", headers=auth)
        assert resp.status_code == 200
        assert resp.json() == created

    def test_list_newest_first(self, client: TestClient, auth) -> None:
        assert client.get("/api/tasks", headers=auth).json() == []
        first = client.post("/api/tasks", json=_task(title="First"), headers=auth).json()
        second = client.post("/api/tasks", json=_task(title="Second"), headers=auth).json()
        ids = [t["id"] for t in client.get("/api/tasks", headers=auth).json()]
        assert ids == [second["id"], first["id"]]

    def test_blank_description_stored_as_null(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", json=_task(description="   "), headers=auth)
        assert resp.json()["description"] is None

    def test_update(self, client: TestClient, auth) -> None:
        task_id = client.post("/api/tasks", json=_task(), headers=auth).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json=_task(title="Rewritten", priority=5), headers=auth)
        assert resp.status_code == 200
        assert resp.json()["title"] == "Rewritten"
        assert resp.json()["priority"] == 5

    def test_delete(self, client: TestClient, auth) -> None:
        task_id = client.post("/api/tasks", json=_task(), headers=auth).json()["id"]
        resp = client.delete(f"/api/tasks/{task_id}", headers=auth)
        assert resp.status_code == 204
        assert client.get(f"/api/tasks/{task_id}", headers=auth).status_code == 404
        assert client.delete(f"/api/tasks/{task_id}", headers=auth).status_code == 404


class TestTaskValidation:
    @pytest.mark.parametrize(
        "overrides,field,code",
        [
            ({"title": "ab"}, "title", "INVALID_LENGTH"),
            ({"title": "x" * 101}, "title", "INVALID_LENGTH"),
            ({"due_date": "19-01-2030"}, "due_date", "INVALID_FORMAT"),
            ({"due_date": "2030-02-30"}, "due_date", "INVALID_FORMAT"),
            ({"due_date": YESTERDAY}, "due_date", "INVALID_VALUE"),
            ({"priority": 0}, "priority", "INVALID_VALUE"),
            ({"priority": 6}, "priority", "INVALID_VALUE"),
            ({"title": ""}, "title", "REQUIRED"),
            ({"title": None}, "title", "REQUIRED"),
            ({"title": "  " + "x" * 99}, "title", "INVALID_LENGTH"),
            ({"due_date": ""}, "due_date", "REQUIRED"),
            ({"due_date": 20300101}, "due_date", "INVALID_FORMAT"),
            ({"priority": "high"}, "priority", "INVALID_VALUE"),
            ({"priority": 2.5}, "priority", "INVALID_VALUE"),
            ({"priority": None}, "priority", "REQUIRED"),
            ({"description": 12}, "description", "INVALID_TYPE"),
        ],
    )
    def test_invalid_fields(self, client: TestClient, auth, overrides, field, code) -> None:
        resp = client.post("/api/tasks", json=_task(**overrides), headers=auth)
        assert resp.status_code == 400
        assert resp.json()["fieldErrors"][0]["field"] == field
        assert resp.json()["fieldErrors"][0]["code"] == code

    def test_missing_title(self, client: TestClient, auth) -> None:
        body = _task()
        del body["title"]
        resp = client.post("/api/tasks", json=body, headers=auth)
        assert resp.status_code == 400
        assert resp.json()["fieldErrors"][0] == {"field": "title", "code": "REQUIRED", "message": "Field 'title' is required."}

    def test_numeric_string_priority_accepted(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", json=_task(priority="3"), headers=auth)
        assert resp.status_code == 201
        assert resp.json()["priority"] == 3

    @pytest.mark.parametrize("bad_id", ["0", "-4", "abc"])
    def test_invalid_id(self, client: TestClient, auth, bad_id) -> None:
        resp = client.get(f"/api/tasks/{bad_id}", headers=auth)
        assert resp.status_code == 400
        assert resp.json()["fieldErrors"][0]["field"] == "id"

    def test_put_unknown_id_is_404_before_validation(self, client: TestClient, auth) -> None:
        resp = client.put("/api/tasks/999", json={"title": "x"}, headers=auth)
        assert resp.status_code == 404

    def test_put_invalid_body(self, client: TestClient, auth) -> None:
        task_id = client.post("/api/tasks", json=_task(), headers=auth).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json=_task(priority=9), headers=auth)
        assert resp.status_code == 400
        assert resp.json()["fieldErrors"][0]["field"] == "priority"

    def test_every_failing_field_is_reported(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", json={"title": "", "due_date": "bad", "priority": 9}, headers=auth)
        assert resp.status_code == 400
        errors = resp.json()["fieldErrors"]
        assert [(e["field"], e["code"]) for e in errors] == [
            ("title", "REQUIRED"),
            ("due_date", "INVALID_FORMAT"),
            ("priority", "INVALID_VALUE"),
        ]

    def test_put_reports_every_failing_field(self, client: TestClient, auth) -> None:
        task_id = client.post("/api/tasks", json=_task(), headers=auth).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json=_task(title="ab", priority=0), headers=auth)
        assert resp.status_code == 400
        assert [e["field"] for e in resp.json()["fieldErrors"]] == ["title", "priority"]

    def test_missing_body_reports_required_fields(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", headers=auth)
        assert resp.status_code == 400
        assert [e["field"] for e in resp.json()["fieldErrors"]] == ["title", "due_date", "priority"]

    def test_non_object_body(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", json=[1, 2], headers=auth)
        assert resp.status_code == 400
        error = resp.json()["fieldErrors"][0]
        assert (error["field"], error["code"]) == ("body", "INVALID_TYPE")

    def test_title_limit_counts_untrimmed_length(self, client: TestClient, auth) -> None:
        resp = client.post("/api/tasks", json=_task(title=" " + "x" * 98 + " "), headers=auth)
        assert resp.status_code == 201
        assert resp.json()["title"] == "x" * 98
