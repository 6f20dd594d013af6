"""
Business rules shared by every store backend.

Handlers call these functions with the request's ``Store``. Failures that the
client caused are raised as ``ServiceError`` subclasses and turned into HTTP
errors by ``main.py``. Store failures propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import config
from security import hash_password, verify_password
from stores import Row, Store

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateEmailError(ServiceError):
    pass


class InvalidCredentialsError(ServiceError):
    pass


class NotAllowedError(ServiceError):
    pass


class NotFoundError(ServiceError):
    status_code = 404


def normalize_email(email: str) -> str:
    """Emails compare case-insensitively everywhere; they are stored lowercased."""
    return email.strip().lower()


def is_admin_email(email: Optional[str]) -> bool:
    return bool(email) and normalize_email(email) == normalize_email(config.ADMIN_EMAIL)


def public_user(user: Row) -> Row:
    """The user payload returned by signup, login and ``/api/me``."""
    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "is_freelancer": bool(user["is_freelancer"]),
        "is_admin": is_admin_email(user["email"]),
    }


# Auth

def signup(store: Store, full_name: str, email: str, password: str, account_type: str = "client") -> Row:
    email = normalize_email(email)
    if store.get_user_by_email(email) is not None:
        raise DuplicateEmailError("User with this email already exists")

    user = store.create_user(
        name=full_name,
        email=email,
        password_hash=hash_password(password),
        is_freelancer=account_type == "freelancer",
    )
    logger.info("Registered user %s (%s)", user["id"], account_type)
    return public_user(user)


def authenticate(store: Store, email: str, password: str) -> Row:
    user = store.get_user_by_email(normalize_email(email))
    if user is None or not verify_password(password, user.get("password_hash")):
        raise InvalidCredentialsError("Invalid email or password")
    return public_user(user)


def ensure_admin_account(store: Store) -> Optional[Row]:
    """Create the admin account from ``ADMIN_PASSWORD`` if it does not exist yet."""
    if not config.ADMIN_PASSWORD:
        return None
    admin_email = normalize_email(config.ADMIN_EMAIL)
    if store.get_user_by_email(admin_email) is not None:
        return None
    admin = store.create_user(
        name="Administrator",
        email=admin_email,
        password_hash=hash_password(config.ADMIN_PASSWORD),
        is_freelancer=False,
    )
    logger.info("Admin user created: %s", config.ADMIN_EMAIL)
    return admin


# Users

def list_users(store: Store) -> List[Row]:
    return store.list_users(exclude_email=normalize_email(config.ADMIN_EMAIL))


def list_freelancer_candidates(store: Store) -> List[Row]:
    return store.list_freelancer_candidates(exclude_email=normalize_email(config.ADMIN_EMAIL))


def set_freelancer_status(store: Store, user_id: int, is_freelancer: bool) -> Row:
    user = store.set_freelancer_status(user_id, is_freelancer)
    if user is None:
        raise NotFoundError("User not found")
    logger.info("User %s freelancer status set to %s", user_id, is_freelancer)
    return user


def update_profile(store: Store, user_id: int, full_name: str, bio: Optional[str]) -> Row:
    user = store.update_profile(user_id, full_name, bio)
    if user is None:
        raise NotFoundError("User not found")
    return user


def delete_user(store: Store, user_id: int) -> None:
    if not store.delete_user(user_id):
        raise NotFoundError("User not found")
    logger.info("Deleted user %s", user_id)


# Projects

def create_project(store: Store, data: Row) -> Row:
    if store.get_user(data["client_id"]) is None:
        raise NotFoundError("Client not found")
    project = store.create_project(data)
    logger.info("Project %s created by client %s", project["id"], data["client_id"])
    return project


def get_project(store: Store, project_id: int) -> Row:
    project = store.get_project(project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


def set_project_status(store: Store, project_id: int, status: str) -> Row:
    # Any status may follow any other; only the value itself is validated
    project = store.set_project_status(project_id, status)
    if project is None:
        raise NotFoundError("Project not found")
    logger.info("Project %s status updated to %s", project_id, status)
    return project


# Applications

def apply_to_project(store: Store, project_id: int, user_id: int, cover_letter: str) -> Row:
    project = store.get_project(project_id)
    if project is None:
        raise NotFoundError("Project not found")
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not user["is_freelancer"]:
        raise NotAllowedError("Only approved freelancers can apply to projects")
    if project["status"] != "open":
        raise NotAllowedError("Project is not open for applications")

    application = store.create_application(project_id, user_id, cover_letter)
    logger.info("User %s applied to project %s", user_id, project_id)
    return application


def list_applications(
    store: Store, project_ids: Optional[Iterable[int]] = None, user_id: Optional[int] = None
) -> List[Row]:
    return store.list_applications(project_ids=project_ids, user_id=user_id)


def update_application_status(store: Store, application_id: int, status: str) -> Row:
    """Set an application's status; approval also assigns its project.

    Nothing stops a second application of the same project from being
    approved later.
    """
    if status == "approved":
        application = store.approve_application(application_id)
    else:
        application = store.set_application_status(application_id, status)
    if application is None:
        raise NotFoundError("Application not found")

    logger.info("Application %s %s", application_id, status)
    if status == "approved":
        logger.info("Project %s assigned", application["project_id"])
    return application


# Freelancer status requests

def submit_freelancer_application(store: Store, data: Row) -> Row:
    if data.get("user_id") is not None and store.get_user(data["user_id"]) is None:
        raise NotFoundError("User not found")
    application = store.create_freelancer_application(data)
    logger.info("Freelancer application %s submitted by %s", application["id"], data["email"])
    return application


def review_freelancer_application(store: Store, application_id: int, status: str) -> Row:
    application = store.review_freelancer_application(application_id, status)
    if application is None:
        raise NotFoundError("Freelancer application not found")
    logger.info("Freelancer application %s %s", application_id, status)
    return application


# Contact form

def submit_contact_message(store: Store, data: Row) -> Row:
    message = store.create_contact_message(data)
    logger.info("Contact message %s received from %s", message["id"], data["email"])
    return message
