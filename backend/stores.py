"""
Persistence backends for the marketplace.

Two implementations share the ``Store`` interface:

* ``SqlStore`` talks to the relational database through a SQLAlchemy session
  (SQLite, PostgreSQL or MSSQL, see ``database.py``).
* ``SupabaseStore`` talks to hosted Supabase tables through the ``supabase``
  client. The tables mirror the SQL schema except that users live in
  ``profiles`` with a ``full_name`` column (see ``supabase_schema.sql``).

Every method returns plain dictionaries so the service layer and the response
models never care which backend produced a row.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from models import Application, ContactMessage, FreelancerApplication, Project, User

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class Store(ABC):
    """Domain-level persistence operations used by the service layer."""

    # Users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[Row]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[Row]: ...

    @abstractmethod
    def create_user(self, name: str, email: str, password_hash: str, is_freelancer: bool) -> Row: ...

    @abstractmethod
    def list_users(self, exclude_email: str) -> List[Row]: ...

    @abstractmethod
    def list_freelancer_candidates(self, exclude_email: str) -> List[Row]: ...

    @abstractmethod
    def set_freelancer_status(self, user_id: int, is_freelancer: bool) -> Optional[Row]: ...

    @abstractmethod
    def update_profile(self, user_id: int, name: str, bio: Optional[str]) -> Optional[Row]: ...

    @abstractmethod
    def delete_user(self, user_id: int) -> bool: ...

    # Projects
    @abstractmethod
    def list_projects(self, status: Optional[str] = None) -> List[Row]: ...

    @abstractmethod
    def list_client_projects(self, client_id: int) -> List[Row]: ...

    @abstractmethod
    def get_project(self, project_id: int) -> Optional[Row]: ...

    @abstractmethod
    def create_project(self, data: Row) -> Row: ...

    @abstractmethod
    def set_project_status(self, project_id: int, status: str) -> Optional[Row]: ...

    # Applications
    @abstractmethod
    def create_application(self, project_id: int, user_id: int, cover_letter: str) -> Row: ...

    @abstractmethod
    def list_applications(
        self, project_ids: Optional[Iterable[int]] = None, user_id: Optional[int] = None
    ) -> List[Row]: ...

    @abstractmethod
    def set_application_status(self, application_id: int, status: str) -> Optional[Row]:
        """Update one application; returns ``None`` when it does not exist."""

    @abstractmethod
    def approve_application(self, application_id: int) -> Optional[Row]:
        """Mark the application approved and its project assigned."""

    # Freelancer status requests
    @abstractmethod
    def create_freelancer_application(self, data: Row) -> Row: ...

    @abstractmethod
    def list_freelancer_applications(self, status: Optional[str] = None) -> List[Row]: ...

    @abstractmethod
    def review_freelancer_application(self, application_id: int, status: str) -> Optional[Row]:
        """Record a review; approval also flags the linked user as freelancer."""

    # Contact form
    @abstractmethod
    def create_contact_message(self, data: Row) -> Row: ...

    @abstractmethod
    def list_contact_messages(self) -> List[Row]: ...


def _as_dict(obj) -> Row:
    return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}


def _user_dict(user: User) -> Row:
    row = _as_dict(user)
    row.pop("password_hash")
    return row


class SqlStore(Store):
    """``Store`` backed by a SQLAlchemy session (one per request)."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # Users
    def get_user(self, user_id):
        user = self.db.get(User, user_id)
        return _user_dict(user) if user else None

    def get_user_by_email(self, email):
        # The only lookup that exposes the password hash, for credential checks
        user = self.db.query(User).filter(func.lower(User.email) == email.lower()).first()
        return _as_dict(user) if user else None

    def create_user(self, name, email, password_hash, is_freelancer):
        user = User(name=name, email=email, password_hash=password_hash, is_freelancer=is_freelancer)
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return _user_dict(user)

    def list_users(self, exclude_email):
        users = (
            self.db.query(User)
            .filter(func.lower(User.email) != exclude_email.lower())
            .order_by(User.id)
            .all()
        )
        return [_user_dict(u) for u in users]

    def list_freelancer_candidates(self, exclude_email):
        users = (
            self.db.query(User)
            .filter(func.lower(User.email) != exclude_email.lower(), User.is_freelancer == False)  # noqa: E712
            .order_by(User.id)
            .all()
        )
        return [_user_dict(u) for u in users]

    def set_freelancer_status(self, user_id, is_freelancer):
        user = self.db.get(User, user_id)
        if user is None:
            return None
        user.is_freelancer = is_freelancer
        self._commit()
        self.db.refresh(user)
        return _user_dict(user)

    def update_profile(self, user_id, name, bio):
        user = self.db.get(User, user_id)
        if user is None:
            return None
        user.name = name
        user.bio = bio
        self._commit()
        self.db.refresh(user)
        return _user_dict(user)

    def delete_user(self, user_id):
        user = self.db.get(User, user_id)
        if user is None:
            return False
        self.db.delete(user)
        self._commit()
        return True

    # Projects
    def list_projects(self, status=None):
        query = self.db.query(Project)
        if status:
            query = query.filter(Project.status == status)
        return [_as_dict(p) for p in query.order_by(Project.id).all()]

    def list_client_projects(self, client_id):
        projects = (
            self.db.query(Project)
            .filter(Project.client_id == client_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )
        return [_as_dict(p) for p in projects]

    def get_project(self, project_id):
        project = self.db.get(Project, project_id)
        return _as_dict(project) if project else None

    def create_project(self, data):
        project = Project(status="open", **data)
        self.db.add(project)
        self._commit()
        self.db.refresh(project)
        return _as_dict(project)

    def set_project_status(self, project_id, status):
        project = self.db.get(Project, project_id)
        if project is None:
            return None
        project.status = status
        self._commit()
        self.db.refresh(project)
        return _as_dict(project)

    # Applications
    def create_application(self, project_id, user_id, cover_letter):
        application = Application(
            project_id=project_id, user_id=user_id, cover_letter=cover_letter, status="pending"
        )
        self.db.add(application)
        self._commit()
        self.db.refresh(application)
        return _as_dict(application)

    def list_applications(self, project_ids=None, user_id=None):
        query = (
            self.db.query(Application, Project.title, User.name, User.email)
            .join(Project, Application.project_id == Project.id)
            .join(User, Application.user_id == User.id)
        )
        if project_ids is not None:
            query = query.filter(Application.project_id.in_(list(project_ids)))
        if user_id is not None:
            query = query.filter(Application.user_id == user_id)

        rows = []
        for application, project_title, user_name, user_email in query.order_by(Application.id):
            row = _as_dict(application)
            row.update(project_title=project_title, user_name=user_name, user_email=user_email)
            rows.append(row)
        return rows

    def set_application_status(self, application_id, status):
        application = self.db.get(Application, application_id)
        if application is None:
            return None
        application.status = status
        self._commit()
        self.db.refresh(application)
        return _as_dict(application)

    def approve_application(self, application_id):
        """Approve and assign in a single commit, so the pair never diverges here."""
        application = self.db.get(Application, application_id)
        if application is None:
            return None
        application.status = "approved"
        if application.project is not None:
            application.project.status = "assigned"
        self._commit()
        self.db.refresh(application)
        return _as_dict(application)

    # Freelancer status requests
    def create_freelancer_application(self, data):
        application = FreelancerApplication(status="pending", **data)
        self.db.add(application)
        self._commit()
        self.db.refresh(application)
        return _as_dict(application)

    def list_freelancer_applications(self, status=None):
        query = self.db.query(FreelancerApplication)
        if status:
            query = query.filter(FreelancerApplication.status == status)
        query = query.order_by(FreelancerApplication.created_at.desc(), FreelancerApplication.id.desc())
        return [_as_dict(a) for a in query.all()]

    def review_freelancer_application(self, application_id, status):
        application = self.db.get(FreelancerApplication, application_id)
        if application is None:
            return None
        application.status = status
        if status == "approved" and application.user is not None:
            application.user.is_freelancer = True
        self._commit()
        self.db.refresh(application)
        return _as_dict(application)

    # Contact form
    def create_contact_message(self, data):
        message = ContactMessage(**data)
        self.db.add(message)
        self._commit()
        self.db.refresh(message)
        return _as_dict(message)

    def list_contact_messages(self):
        messages = self.db.query(ContactMessage).order_by(ContactMessage.id.desc()).all()
        return [_as_dict(m) for m in messages]


def _profile_to_user(profile: Row, with_password: bool = False) -> Row:
    user = {
        "id": profile["id"],
        "name": profile.get("full_name"),
        "email": profile.get("email"),
        "bio": profile.get("bio"),
        "is_freelancer": bool(profile.get("is_freelancer")),
        "created_at": profile.get("created_at"),
    }
    if with_password:
        user["password_hash"] = profile.get("password_hash")
    return user


def _first(response) -> Optional[Row]:
    return response.data[0] if response.data else None


class SupabaseStore(Store):
    """``Store`` backed by Supabase tables through PostgREST.

    PostgREST has no multi-statement transactions, so ``approve_application``
    issues two independent updates. If the second one fails the application
    stays approved while its project is still open.
    """

    def __init__(self, client):
        self.client = client

    def _table(self, name: str):
        return self.client.table(name)

    # Users
    def get_user(self, user_id):
        profile = _first(self._table("profiles").select("*").eq("id", user_id).limit(1).execute())
        return _profile_to_user(profile) if profile else None

    def get_user_by_email(self, email):
        # emails are written lowercased by the service layer, so eq is exact here
        profile = _first(self._table("profiles").select("*").eq("email", email.lower()).limit(1).execute())
        return _profile_to_user(profile, with_password=True) if profile else None

    def create_user(self, name, email, password_hash, is_freelancer):
        response = self._table("profiles").insert(
            {
                "full_name": name,
                "email": email.lower(),
                "password_hash": password_hash,
                "is_freelancer": is_freelancer,
            }
        ).execute()
        return _profile_to_user(response.data[0])

    def list_users(self, exclude_email):
        response = self._table("profiles").select("*").neq("email", exclude_email.lower()).order("id").execute()
        return [_profile_to_user(p) for p in response.data]

    def list_freelancer_candidates(self, exclude_email):
        response = (
            self._table("profiles")
            .select("*")
            .neq("email", exclude_email.lower())
            .eq("is_freelancer", False)
            .order("id")
            .execute()
        )
        return [_profile_to_user(p) for p in response.data]

    def set_freelancer_status(self, user_id, is_freelancer):
        profile = _first(
            self._table("profiles").update({"is_freelancer": is_freelancer}).eq("id", user_id).execute()
        )
        return _profile_to_user(profile) if profile else None

    def update_profile(self, user_id, name, bio):
        profile = _first(
            self._table("profiles").update({"full_name": name, "bio": bio}).eq("id", user_id).execute()
        )
        return _profile_to_user(profile) if profile else None

    def delete_user(self, user_id):
        # projects and applications go with it through ON DELETE CASCADE
        response = self._table("profiles").delete().eq("id", user_id).execute()
        return bool(response.data)

    # Projects
    def list_projects(self, status=None):
        query = self._table("projects").select("*")
        if status:
            query = query.eq("status", status)
        return query.order("id").execute().data

    def list_client_projects(self, client_id):
        return (
            self._table("projects")
            .select("*")
            .eq("client_id", client_id)
            .order("created_at", desc=True)
            .execute()
            .data
        )

    def get_project(self, project_id):
        return _first(self._table("projects").select("*").eq("id", project_id).limit(1).execute())

    def create_project(self, data):
        payload = dict(data, status="open")
        payload["deadline"] = payload["deadline"].isoformat()
        return self._table("projects").insert(payload).execute().data[0]

    def set_project_status(self, project_id, status):
        return _first(self._table("projects").update({"status": status}).eq("id", project_id).execute())

    # Applications
    def create_application(self, project_id, user_id, cover_letter):
        response = self._table("applications").insert(
            {
                "project_id": project_id,
                "user_id": user_id,
                "cover_letter": cover_letter,
                "status": "pending",
            }
        ).execute()
        return response.data[0]

    def list_applications(self, project_ids=None, user_id=None):
        query = self._table("applications").select("*, projects(title), profiles(full_name, email)")
        if project_ids is not None:
            query = query.in_("project_id", list(project_ids))
        if user_id is not None:
            query = query.eq("user_id", user_id)

        rows = []
        for row in query.order("id").execute().data:
            project = row.pop("projects", None) or {}
            profile = row.pop("profiles", None) or {}
            row.update(
                project_title=project.get("title"),
                user_name=profile.get("full_name"),
                user_email=profile.get("email"),
            )
            rows.append(row)
        return rows

    def set_application_status(self, application_id, status):
        return _first(
            self._table("applications").update({"status": status}).eq("id", application_id).execute()
        )

    def approve_application(self, application_id):
        application = self.set_application_status(application_id, "approved")
        if application is None:
            return None
        try:
            self.set_project_status(application["project_id"], "assigned")
        except Exception:
            logger.error(
                "Application %s approved but project %s was not assigned",
                application_id,
                application["project_id"],
            )
            raise
        return application

    # Freelancer status requests
    def create_freelancer_application(self, data):
        return self._table("freelancer_applications").insert(dict(data, status="pending")).execute().data[0]

    def list_freelancer_applications(self, status=None):
        query = self._table("freelancer_applications").select("*")
        if status:
            query = query.eq("status", status)
        return query.order("created_at", desc=True).execute().data

    def review_freelancer_application(self, application_id, status):
        application = _first(
            self._table("freelancer_applications")
            .update({"status": status})
            .eq("id", application_id)
            .execute()
        )
        if application is None:
            return None
        if status == "approved" and application.get("user_id") is not None:
            self.set_freelancer_status(application["user_id"], True)
        return application

    # Contact form
    def create_contact_message(self, data):
        return self._table("contact_messages").insert(dict(data)).execute().data[0]

    def list_contact_messages(self):
        return self._table("contact_messages").select("*").order("id", desc=True).execute().data
