from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Term = Literal["odd", "even"]


# -----------------------------
# Catalog records
# -----------------------------
class Resource(BaseModel):
    id: str
    file_name: str = Field("Untitled", alias="fileName")
    file_url: str = Field("", alias="fileUrl")
    file_type: str = Field("file", alias="fileType")
    uploaded_by: str = Field("", alias="uploadedBy")
    uploader_name: str = Field("", alias="uploaderName")
    role: Optional[str] = None
    semester: int = 0
    subject: str = ""
    subject_code: str = Field("", alias="subjectCode")
    academic_year: str = Field("", alias="academicYear")
    term: Optional[Term] = None
    delete_token: Optional[str] = Field(None, alias="deleteToken")
    downloads: int = 0
    uploaded_at: Optional[datetime] = Field(None, alias="uploadedAt")
    uploaded_at_ms: int = Field(0, alias="uploadedAtMs")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class DownloadEvent(BaseModel):
    id: str
    resource_id: str = Field("", alias="resourceId")
    file_name: str = Field("Untitled", alias="fileName")
    subject: str = ""
    semester: int = 0
    file_url: str = Field("", alias="fileUrl")
    file_type: str = Field("file", alias="fileType")
    downloaded_at: Optional[datetime] = Field(None, alias="downloadedAt")
    downloaded_at_ms: int = Field(0, alias="downloadedAtMs")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


# -----------------------------
# Responses
# -----------------------------
class BaseResponse(BaseModel):
    success: bool
    message: str


class ResourceListResponse(BaseResponse):
    data: List[Resource]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool


class ResourceGroup(BaseModel):
    key: str
    count: int
    resources: List[Resource]


class ResourceGroupResponse(BaseResponse):
    data: List[ResourceGroup]


class SubjectListResponse(BaseResponse):
    data: List[str]


class DownloadLinkData(BaseModel):
    resource_id: str
    file_url: str
    file_name: str


class DownloadLinkResponse(BaseResponse):
    data: DownloadLinkData


class DownloadListResponse(BaseResponse):
    data: List[DownloadEvent]
    total: int
