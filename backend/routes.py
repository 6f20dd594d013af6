"""API route handlers.

Everything lives on one router that ``main.py`` mounts under ``/api``.
Handlers stay thin: they unpack the request, call into ``services`` and shape
the JSON response.
"""

from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

import config
import services
from dependencies import get_current_user, get_store
from schemas import (
    ApplicationCreate,
    ApplicationCreatedResponse,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationStatusUpdate,
    AuthUser,
    ContactMessageCreate,
    ContactMessageResponse,
    FreelancerApplicationCreate,
    FreelancerApplicationResponse,
    FreelancerApplicationReview,
    FreelancerStatusUpdate,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileUpdate,
    ProjectCreate,
    ProjectCreatedResponse,
    ProjectResponse,
    ProjectStatus,
    ProjectStatusUpdate,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from security import create_access_token
from stores import Store

router = APIRouter()


@router.get("/status")
async def api_status():
    return {
        "message": "SkillHive Marketplace API",
        "docs": "/docs",
        "status": "running",
        "store": config.STORE_BACKEND,
        "version": "1.0.0",
    }


# Auth

@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(body: SignupRequest, store: Store = Depends(get_store)):
    user = services.signup(store, body.full_name, body.email, body.password, body.account_type)
    return {"message": "User registered successfully", "user": user}


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, store: Store = Depends(get_store)):
    user = services.authenticate(store, body.email, body.password)
    access_token = create_access_token(
        data={"sub": str(user["id"])},
        expires_delta=timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {
        "message": "Login successful",
        "user": user,
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=AuthUser)
def me(current_user: dict = Depends(get_current_user)):
    return services.public_user(current_user)


# Projects

@router.get("/projects", response_model=List[ProjectResponse])
def list_projects(status: Optional[ProjectStatus] = None, store: Store = Depends(get_store)):
    return store.list_projects(status=status)


@router.post("/projects", response_model=ProjectCreatedResponse, status_code=201)
def create_project(body: ProjectCreate, store: Store = Depends(get_store)):
    project = services.create_project(store, body.model_dump())
    return {"message": "Project created successfully", "project": project}


@router.get("/projects/client/{client_id}", response_model=List[ProjectResponse])
def list_client_projects(client_id: int, store: Store = Depends(get_store)):
    return store.list_client_projects(client_id)


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, store: Store = Depends(get_store)):
    return services.get_project(store, project_id)


@router.put("/projects/{project_id}/status", response_model=MessageResponse)
def update_project_status(project_id: int, body: ProjectStatusUpdate, store: Store = Depends(get_store)):
    services.set_project_status(store, project_id, body.status)
    return {"message": f"Project status updated to {body.status}"}


# Applications

@router.post("/applications", response_model=ApplicationCreatedResponse, status_code=201)
def submit_application(body: ApplicationCreate, store: Store = Depends(get_store)):
    application = services.apply_to_project(store, body.project_id, body.user_id, body.cover_letter)
    return {"message": "Application submitted successfully", "application": application}


@router.get("/applications", response_model=List[ApplicationResponse])
def list_applications(user_id: Optional[int] = None, store: Store = Depends(get_store)):
    return services.list_applications(store, user_id=user_id)


@router.get("/applications/projects", response_model=List[ApplicationResponse])
def list_project_applications(
    project_ids: Optional[List[int]] = Query(None, alias="projectId"),
    store: Store = Depends(get_store),
):
    if not project_ids:
        raise HTTPException(status_code=400, detail="Project IDs are required")
    return services.list_applications(store, project_ids=project_ids)


@router.put("/applications/{application_id}", response_model=MessageResponse)
def update_application(application_id: int, body: ApplicationStatusUpdate, store: Store = Depends(get_store)):
    services.update_application_status(store, application_id, body.status)
    return {"message": f"Application {body.status} successfully"}


# User management

@router.get("/users", response_model=List[UserResponse])
def list_users(store: Store = Depends(get_store)):
    return services.list_users(store)


@router.get("/users/freelancers", response_model=List[UserResponse])
def list_freelancer_candidates(store: Store = Depends(get_store)):
    return services.list_freelancer_candidates(store)


@router.put("/users/{user_id}/freelancer-status", response_model=MessageResponse)
def update_freelancer_status(user_id: int, body: FreelancerStatusUpdate, store: Store = Depends(get_store)):
    services.set_freelancer_status(store, user_id, body.is_freelancer)
    return {"message": "User freelancer status updated successfully"}


@router.put("/users/{user_id}/profile", response_model=MessageResponse)
def update_profile(user_id: int, body: ProfileUpdate, store: Store = Depends(get_store)):
    services.update_profile(store, user_id, body.full_name, body.bio)
    return {"message": "Profile updated successfully"}


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, store: Store = Depends(get_store)):
    services.delete_user(store, user_id)
    return {"message": "User deleted successfully"}


# Student requests for freelancer status

@router.post(
    "/freelancer-applications",
    response_model=FreelancerApplicationResponse,
    status_code=201,
)
def submit_freelancer_application(body: FreelancerApplicationCreate, store: Store = Depends(get_store)):
    return services.submit_freelancer_application(store, body.model_dump())


@router.get("/freelancer-applications", response_model=List[FreelancerApplicationResponse])
def list_freelancer_applications(
    status: Optional[ApplicationStatus] = None, store: Store = Depends(get_store)
):
    return store.list_freelancer_applications(status=status)


@router.put("/freelancer-applications/{application_id}", response_model=FreelancerApplicationResponse)
def review_freelancer_application(
    application_id: int, body: FreelancerApplicationReview, store: Store = Depends(get_store)
):
    return services.review_freelancer_application(store, application_id, body.status)


# Contact form

@router.post("/contact", response_model=ContactMessageResponse, status_code=201)
def submit_contact_message(body: ContactMessageCreate, store: Store = Depends(get_store)):
    return services.submit_contact_message(store, body.model_dump())


@router.get("/contact", response_model=List[ContactMessageResponse])
def list_contact_messages(store: Store = Depends(get_store)):
    return store.list_contact_messages()
