"""
Tests for the application lifecycle: apply, list, approve/reject.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from dependencies import get_store
from main import app
from stores import Store


@pytest.fixture
def owner(make_user):
    return make_user("owner@klu.ac.in", name="Project Owner")


@pytest.fixture
def freelancer(make_user):
    return make_user("student@klu.ac.in", name="Student Dev", freelancer=True)


@pytest.fixture
def project(owner, make_project):
    return make_project(owner["id"], title="Club website")


def apply(client, project_id, user_id, cover_letter="I have built three club sites before."):
    return client.post(
        "/api/applications",
        json={"project_id": project_id, "user_id": user_id, "cover_letter": cover_letter},
    )


class TestSubmitApplication:
    def test_application_starts_pending(self, client, project, freelancer) -> None:
        response = apply(client, project["id"], freelancer["id"])

        assert response.status_code == 201
        application = response.json()["application"]
        assert application["status"] == "pending"
        assert application["project_id"] == project["id"]
        assert application["user_id"] == freelancer["id"]

    def test_missing_project_is_404(self, client, freelancer) -> None:
        assert apply(client, 404, freelancer["id"]).status_code == 404

    def test_missing_user_is_404(self, client, project) -> None:
        assert apply(client, project["id"], 999).status_code == 404

    def test_non_freelancer_cannot_apply(self, client, project, make_user) -> None:
        plain = make_user("plain@klu.ac.in")
        response = apply(client, project["id"], plain["id"])
        assert response.status_code == 400

    def test_closed_project_rejects_applications(self, client, project, freelancer) -> None:
        client.put(f"/api/projects/{project['id']}/status", json={"status": "cancelled"})
        assert apply(client, project["id"], freelancer["id"]).status_code == 400


class TestListApplications:
    def test_list_includes_project_and_applicant(self, client, project, freelancer) -> None:
        apply(client, project["id"], freelancer["id"])

        rows = client.get("/api/applications").json()

        assert len(rows) == 1
        assert rows[0]["project_title"] == "Club website"
        assert rows[0]["user_name"] == "Student Dev"
        assert rows[0]["user_email"] == "student@klu.ac.in"

    def test_filter_by_user(self, client, project, freelancer, make_user) -> None:
        other = make_user("other-student@klu.ac.in", freelancer=True)
        apply(client, project["id"], freelancer["id"])
        apply(client, project["id"], other["id"])

        rows = client.get("/api/applications", params={"user_id": other["id"]}).json()

        assert [r["user_id"] for r in rows] == [other["id"]]

    def test_applications_for_projects(self, client, owner, make_project, freelancer) -> None:
        first = make_project(owner["id"], title="First")
        second = make_project(owner["id"], title="Second")
        third = make_project(owner["id"], title="Third")
        for p in (first, second, third):
            apply(client, p["id"], freelancer["id"])

        response = client.get(
            "/api/applications/projects",
            params=[("projectId", first["id"]), ("projectId", third["id"])],
        )

        assert response.status_code == 200
        assert sorted(r["project_id"] for r in response.json()) == sorted([first["id"], third["id"]])

    def test_applications_for_projects_requires_ids(self, client) -> None:
        response = client.get("/api/applications/projects")
        assert response.status_code == 400
        assert response.json()["detail"] == "Project IDs are required"


class TestApplicationStatus:
    def test_approve_assigns_project(self, client, project, freelancer) -> None:
        application = apply(client, project["id"], freelancer["id"]).json()["application"]

        response = client.put(f"/api/applications/{application['id']}", json={"status": "approved"})

        assert response.status_code == 200
        assert response.json()["message"] == "Application approved successfully"
        rows = client.get("/api/applications").json()
        assert rows[0]["status"] == "approved"
        assert client.get(f"/api/projects/{project['id']}").json()["status"] == "assigned"

    def test_reject_leaves_project_open(self, client, project, freelancer) -> None:
        application = apply(client, project["id"], freelancer["id"]).json()["application"]

        response = client.put(f"/api/applications/{application['id']}", json={"status": "rejected"})

        assert response.status_code == 200
        assert client.get("/api/applications").json()[0]["status"] == "rejected"
        assert client.get(f"/api/projects/{project['id']}").json()["status"] == "open"

    def test_second_approval_is_not_prevented(self, client, project, freelancer, make_user) -> None:
        other = make_user("second@klu.ac.in", freelancer=True)
        first = apply(client, project["id"], freelancer["id"]).json()["application"]
        second = apply(client, project["id"], other["id"]).json()["application"]

        client.put(f"/api/applications/{first['id']}", json={"status": "approved"})
        response = client.put(f"/api/applications/{second['id']}", json={"status": "approved"})

        assert response.status_code == 200
        statuses = {r["id"]: r["status"] for r in client.get("/api/applications").json()}
        assert statuses == {first["id"]: "approved", second["id"]: "approved"}

    def test_unknown_application_is_404(self, client) -> None:
        response = client.put("/api/applications/555", json={"status": "approved"})
        assert response.status_code == 404

    def test_unknown_status_value_is_400(self, client, project, freelancer) -> None:
        application = apply(client, project["id"], freelancer["id"]).json()["application"]
        response = client.put(f"/api/applications/{application['id']}", json={"status": "maybe"})
        assert response.status_code == 400


class TestStoreFailures:
    def test_database_error_becomes_generic_500(self, client) -> None:
        failing = MagicMock(spec=Store)
        failing.list_applications.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        app.dependency_overrides[get_store] = lambda: failing

        response = client.get("/api/applications")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
