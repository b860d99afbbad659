from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


@dataclass
class FileUpload:
    filename: str
    content: bytes
    content_type: str


@dataclass
class UploadResult:
    url: str
    delete_token: Optional[str] = None
    resource_type: Optional[str] = None
    original_filename: Optional[str] = None
    format: Optional[str] = None
    public_id: Optional[str] = None


class ResourceUploadForm(BaseModel):
    # raw form value, parsed by validate_upload
    semester: Optional[Any] = None
    subject: str = ""
    subject_code: str = ""
    academic_year: str = ""
    term: str = ""

    model_config = ConfigDict(str_strip_whitespace=True)


class WorkflowResult(BaseModel):
    success: bool
    message: str
    resource_id: Optional[str] = None
    file_url: Optional[str] = None
