from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from campus_resources.schemas.resource_schema import Resource

Role = Literal["student", "teacher", "admin"]

ADMIN_PERMISSIONS = ["manage_users", "manage_resources", "manage_system"]


class Actor(BaseModel):
    """The identity performing an operation, resolved once per request."""

    uid: Optional[str] = None
    email: str = ""
    username: str = ""
    role: Optional[Role] = None

    model_config = ConfigDict(frozen=True)


class UserProfile(BaseModel):
    uid: str
    username: str = ""
    email: str = ""
    role: Optional[Role] = None
    usn: Optional[str] = None
    semester: Optional[int] = None
    branch: Optional[str] = None
    subjects: List[str] = Field(default_factory=list)
    department: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    blocked: bool = False
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class UserProfileCreateRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=1, max_length=100)
    role: Role
    usn: Optional[str] = None
    semester: Optional[int] = Field(None, ge=1, le=8)
    subjects: Optional[List[str]] = None


# -----------------------------
# Responses
# -----------------------------
class UserListResponse(BaseModel):
    success: bool
    message: str
    data: List[UserProfile]


class UserBlockRequest(BaseModel):
    blocked: bool


class UserBlockResponse(BaseModel):
    success: bool
    message: str
    data: UserProfile


class CascadeDeleteData(BaseModel):
    uid: str
    resources_deleted: int
    binaries_failed: int
    metadata_failed: int


class CascadeDeleteResponse(BaseModel):
    success: bool
    message: str
    data: CascadeDeleteData


class CatalogStats(BaseModel):
    total_resources: int
    total_downloads: int
    uploads_per_semester: List[int]
    uploads_per_teacher: List[tuple[str, int]]
    top_downloads: List[Resource]
    users_by_role: dict[str, int]
    blocked_users: int


class CatalogStatsResponse(BaseModel):
    success: bool
    message: str
    data: CatalogStats


class UserProfileResponse(BaseModel):
    success: bool
    message: str
    data: UserProfile
