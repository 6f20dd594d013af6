from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

ProjectStatus = Literal["open", "assigned", "completed", "cancelled"]
ApplicationStatus = Literal["pending", "approved", "rejected"]


class MessageResponse(BaseModel):
    message: str


# Auth
class SignupRequest(BaseModel):
    full_name: str = Field(..., alias="fullName", min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    account_type: Literal["client", "freelancer"] = Field("client", alias="accountType")

    class Config:
        populate_by_name = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    is_freelancer: bool
    bio: Optional[str] = None

    class Config:
        from_attributes = True


class AuthUser(BaseModel):
    id: int
    name: str
    email: str
    is_freelancer: bool
    is_admin: bool


class SignupResponse(BaseModel):
    message: str
    user: AuthUser


class LoginResponse(BaseModel):
    message: str
    user: AuthUser
    access_token: str
    token_type: str = "bearer"


# Projects
class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str
    budget: float = Field(..., ge=0)
    deadline: date
    category: str
    skills: List[str] = []
    client_id: int


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: str
    budget: float
    deadline: date
    category: str
    skills: List[str] = []
    client_id: int
    status: ProjectStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectCreatedResponse(BaseModel):
    message: str
    project: ProjectResponse


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus


# Applications
class ApplicationCreate(BaseModel):
    project_id: int
    user_id: int
    cover_letter: str = Field(..., min_length=1)


class ApplicationResponse(BaseModel):
    id: int
    project_id: int
    user_id: int
    cover_letter: str
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    project_title: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    class Config:
        from_attributes = True


class ApplicationCreatedResponse(BaseModel):
    message: str
    application: ApplicationResponse


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


# Users
class FreelancerStatusUpdate(BaseModel):
    is_freelancer: bool


class ProfileUpdate(BaseModel):
    full_name: str = Field(..., min_length=1)
    bio: Optional[str] = None


# Student requests for freelancer status
class FreelancerApplicationCreate(BaseModel):
    user_id: Optional[int] = None
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    university: str
    major: str
    skills: List[str] = []
    experience: Optional[str] = None
    portfolio_url: Optional[str] = None
    github_url: Optional[str] = None
    resume_url: Optional[str] = None

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, list):
            return value
        # non-string items are left for the List[str] check to reject
        return [s.strip() if isinstance(s, str) else s for s in value if not isinstance(s, str) or s.strip()]


class FreelancerApplicationResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    full_name: str
    email: str
    university: str
    major: str
    skills: List[str] = []
    experience: Optional[str] = None
    portfolio_url: Optional[str] = None
    github_url: Optional[str] = None
    resume_url: Optional[str] = None
    status: ApplicationStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FreelancerApplicationReview(BaseModel):
    status: ApplicationStatus


# Contact form
class ContactMessageCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class ContactMessageResponse(BaseModel):
    id: int
    name: str
    email: str
    subject: str
    message: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
