"""
Tests for SupabaseStore against a recording stand-in for the supabase client.

``FakeSupabase.table(name)`` returns a query object that records every builder
call and, on ``execute()``, pops the next queued response for that table.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from types import SimpleNamespace

import pytest

import services
from stores import SupabaseStore


class FakeQuery:
    def __init__(self, table, responses):
        self.table = table
        self.calls = []
        self._responses = responses

    def __getattr__(self, method):
        def record(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self

        return record

    def execute(self):
        queue = self._responses[self.table]
        return SimpleNamespace(data=queue.pop(0) if queue else [])


class FakeSupabase:
    def __init__(self):
        self.responses = defaultdict(list)
        self.queries = []

    def queue(self, table, data):
        self.responses[table].append(data)

    def table(self, name):
        query = FakeQuery(name, self.responses)
        self.queries.append(query)
        return query


@pytest.fixture
def fake():
    return FakeSupabase()


@pytest.fixture
def store(fake):
    return SupabaseStore(fake)


PROFILE = {
    "id": 7,
    "full_name": "Student Dev",
    "email": "student@klu.ac.in",
    "password_hash": "$2b$04$hash",
    "bio": None,
    "is_freelancer": True,
    "created_at": "2026-10-01T10:00:00+00:00",
}


class TestProfiles:
    def test_profile_rows_become_users(self, fake, store) -> None:
        fake.queue("profiles", [PROFILE])

        user = store.get_user(7)

        assert user["name"] == "Student Dev"
        assert user["is_freelancer"] is True
        assert "password_hash" not in user
        assert fake.queries[0].calls[:2] == [("select", ("*",), {}), ("eq", ("id", 7), {})]

    def test_lookup_by_email_keeps_hash_for_login(self, fake, store) -> None:
        fake.queue("profiles", [PROFILE])
        assert store.get_user_by_email("student@klu.ac.in")["password_hash"] == "$2b$04$hash"

    def test_missing_user(self, store) -> None:
        assert store.get_user(1) is None

    def test_list_users_excludes_email(self, fake, store) -> None:
        fake.queue("profiles", [PROFILE])

        users = store.list_users(exclude_email="admin@klu.ac.in")

        assert [u["id"] for u in users] == [7]
        assert ("neq", ("email", "admin@klu.ac.in"), {}) in fake.queries[0].calls

    def test_delete_reports_whether_a_row_went(self, fake, store) -> None:
        fake.queue("profiles", [PROFILE])
        assert store.delete_user(7) is True
        assert store.delete_user(8) is False


class TestProjects:
    def test_create_project_serialises_deadline(self, fake, store) -> None:
        fake.queue("projects", [{"id": 3, "status": "open"}])

        store.create_project({"title": "Site", "deadline": date(2026, 12, 1), "client_id": 7})

        method, args, _ = fake.queries[0].calls[0]
        assert method == "insert"
        assert args[0]["deadline"] == "2026-12-01"
        assert args[0]["status"] == "open"

    def test_client_projects_newest_first(self, fake, store) -> None:
        store.list_client_projects(7)
        assert ("order", ("created_at",), {"desc": True}) in fake.queries[0].calls


class TestApplications:
    def test_joined_columns_are_flattened(self, fake, store) -> None:
        fake.queue(
            "applications",
            [
                {
                    "id": 1,
                    "project_id": 3,
                    "user_id": 7,
                    "cover_letter": "Hi",
                    "status": "pending",
                    "projects": {"title": "Site"},
                    "profiles": {"full_name": "Student Dev", "email": "student@klu.ac.in"},
                }
            ],
        )

        rows = store.list_applications(project_ids=[3])

        assert rows[0]["project_title"] == "Site"
        assert rows[0]["user_name"] == "Student Dev"
        assert rows[0]["user_email"] == "student@klu.ac.in"
        assert "projects" not in rows[0]
        assert ("in_", ("project_id", [3]), {}) in fake.queries[0].calls

    def test_approve_updates_application_then_project(self, fake, store) -> None:
        fake.queue("applications", [{"id": 1, "project_id": 3, "status": "approved"}])
        fake.queue("projects", [{"id": 3, "status": "assigned"}])

        application = services.update_application_status(store, 1, "approved")

        assert application["status"] == "approved"
        app_query, project_query = fake.queries
        assert (app_query.table, app_query.calls[0]) == ("applications", ("update", ({"status": "approved"},), {}))
        assert (project_query.table, project_query.calls[0]) == ("projects", ("update", ({"status": "assigned"},), {}))
        assert ("eq", ("id", 3), {}) in project_query.calls

    def test_approving_missing_application_touches_nothing_else(self, fake, store) -> None:
        with pytest.raises(services.NotFoundError):
            services.update_application_status(store, 99, "approved")
        assert [q.table for q in fake.queries] == ["applications"]

    def test_project_update_failure_leaves_application_approved(self, fake, store, monkeypatch) -> None:
        fake.queue("applications", [{"id": 1, "project_id": 3, "status": "approved"}])

        def boom(project_id, status):
            raise RuntimeError("network down")

        monkeypatch.setattr(store, "set_project_status", boom)

        with pytest.raises(RuntimeError):
            store.approve_application(1)
        assert fake.queries[0].calls[0] == ("update", ({"status": "approved"},), {})


class TestFreelancerApplications:
    def test_approval_flags_linked_profile(self, fake, store) -> None:
        fake.queue("freelancer_applications", [{"id": 5, "user_id": 7, "status": "approved"}])
        fake.queue("profiles", [PROFILE])

        store.review_freelancer_application(5, "approved")

        profile_query = fake.queries[1]
        assert profile_query.table == "profiles"
        assert profile_query.calls[0] == ("update", ({"is_freelancer": True},), {})

    def test_rejection_does_not_touch_profiles(self, fake, store) -> None:
        fake.queue("freelancer_applications", [{"id": 5, "user_id": 7, "status": "rejected"}])

        store.review_freelancer_application(5, "rejected")

        assert [q.table for q in fake.queries] == ["freelancer_applications"]


class TestEmailCase:
    def test_lookup_and_insert_use_lowercased_email(self, fake, store) -> None:
        fake.queue("profiles", [PROFILE])
        fake.queue("profiles", [dict(PROFILE, id=8, email="new@klu.ac.in")])

        store.get_user_by_email("Student@KLU.ac.in")
        store.create_user("New", "NEW@klu.ac.in", "hash", False)

        assert ("eq", ("email", "student@klu.ac.in"), {}) in fake.queries[0].calls
        assert fake.queries[1].calls[0][1][0]["email"] == "new@klu.ac.in"
