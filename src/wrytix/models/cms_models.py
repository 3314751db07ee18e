"""
# CMS Models

Enums and request models for the Wrytix CMS.

## Wire format

Request and stored documents use camelCase keys (`isPublished`, `startDate`,
`pendingUserId`, `editorComments`) so existing clients and flat-file data keep
working. Models expose snake_case attributes and accept either spelling.

## Domain Model Overview

- **User**: an account with a `Role` and a `UserStatus`.
- **PendingUser**: a self-registration awaiting an admin decision.
- **PendingDeletion**: an editor/admin request to remove a user.
- **Post** / **PostSubmission**: published content and author drafts under review.
- **Ad**: a date-bounded advertisement.
- **Comment**: per-slug append-only thread.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Privilege levels. There is no hierarchy; each endpoint lists its roles."""

    ADMIN = "admin"
    EDITOR = "editor"
    AUTHOR = "author"
    VIEWER = "viewer"


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class RegistrationRole(str, Enum):
    """Roles that may be requested through self-registration."""

    AUTHOR = "author"
    EDITOR = "editor"


class SubmissionStatus(str, Enum):
    """Post submission review states. `approved` submissions become posts and are removed."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def validate_slug_value(v: str) -> str:
    v = v.strip().lower()
    if not v:
        raise ValueError("Slug cannot be empty")
    if not v.replace("-", "").replace("_", "").isalnum():
        raise ValueError("Slug can only contain letters, numbers, hyphens, and underscores")
    if v.startswith(("-", "_")) or v.endswith(("-", "_")):
        raise ValueError("Slug cannot start or end with hyphens or underscores")
    return v


class CamelModel(BaseModel):
    """Base model accepting camelCase or snake_case input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Dump the fields the client actually sent, with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


# --- Sessions ---


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class HeadlineUpdateRequest(CamelModel):
    text: Optional[str] = None


# --- Posts ---


class CreatePostRequest(CamelModel):
    """Post creation by an editor or admin. `schedule` defaults to now."""

    slug: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=300)
    content: str = ""
    author: Optional[str] = None
    category: Optional[str] = None
    thumbnail: Optional[str] = None
    source: Optional[str] = None
    featured: bool = False
    schedule: Optional[str] = Field(None, description="ISO-8601 publish time")

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return validate_slug_value(v)


class UpdatePostRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    thumbnail: Optional[str] = None
    source: Optional[str] = None
    featured: Optional[bool] = None
    schedule: Optional[str] = None


# --- Post submissions ---


class CreateSubmissionRequest(CamelModel):
    slug: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=300)
    content: str = ""
    category: Optional[str] = None
    thumbnail: Optional[str] = None
    schedule: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return validate_slug_value(v)


class UpdateSubmissionRequest(CamelModel):
    """
    Submission edit or review decision.

    Authors may change the content fields of their own pending submissions.
    Only editors and admins may set `status` or `editorComments`.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = None
    category: Optional[str] = None
    thumbnail: Optional[str] = None
    schedule: Optional[str] = None
    status: Optional[SubmissionStatus] = None
    editor_comments: Optional[str] = Field(None, max_length=5000)


# --- Users ---


class CreateUserRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Role = Role.VIEWER
    status: UserStatus = UserStatus.ACTIVE
    full_name: Optional[str] = None
    avatar: Optional[str] = None


class UpdateUserRequest(CamelModel):
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)
    role: Optional[Role] = None
    status: Optional[UserStatus] = None
    full_name: Optional[str] = None
    avatar: Optional[str] = None


class RegistrationRequest(CamelModel):
    """Self-registration. `pdfFilename`/`pdfOriginalName` reference an uploaded supporting document."""

    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: RegistrationRole = RegistrationRole.AUTHOR
    full_name: Optional[str] = None
    avatar: Optional[str] = None
    submitted_by: Optional[str] = None
    pdf_filename: Optional[str] = None
    pdf_original_name: Optional[str] = None


class ApproveUserRequest(CamelModel):
    pending_user_id: Optional[str] = None


class DeletionRequest(CamelModel):
    user_id: Optional[str] = None
    reason: Optional[str] = None
    target_username: Optional[str] = None
    target_email: Optional[str] = None
    target_role: Optional[str] = None
    target_full_name: Optional[str] = None
    target_avatar: Optional[str] = None


# --- Ads ---


class CreateAdRequest(CamelModel):
    type: Optional[str] = None
    category: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    link: str = ""
    company: str = ""
    html: str = ""
    text: str = ""
    file: str = ""
    active: bool = False


class UpdateAdRequest(CamelModel):
    type: Optional[str] = None
    category: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    link: Optional[str] = None
    company: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None
    file: Optional[str] = None
    active: Optional[bool] = None


# --- Comments ---


class CommentRequest(CamelModel):
    slug: Optional[str] = None
    username: Optional[str] = None
    comment: Optional[str] = Field(None, max_length=5000)
    timestamp: Optional[str] = None
