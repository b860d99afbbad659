"""
Normalization boundary between raw stored records and the catalog models.

Stored resources drifted across several schema versions (`url` vs `fileUrl`,
`teacherId` vs `uploadedBy`, `timestamp` vs `uploadedAt`, semester stored as
numbers or labels under half a dozen names). Everything past this module works
with `Resource`, `DownloadEvent` and `UserProfile` only. Normalization is total:
it fills defaults and never raises.
"""

import re
from typing import Any, Optional

from campus_resources.schemas.resource_schema import DownloadEvent, Resource
from campus_resources.schemas.user_schema import UserProfile
from campus_resources.services.utils.time_utils import to_datetime, to_millis

SEMESTER_FIELDS = ("semester", "sem", "semesterNo", "semNo", "semester_number", "semesterIndex")
MIN_SEMESTER = 1
MAX_SEMESTER = 8
UNCATEGORIZED_SEMESTER = 0

ROLES = ("student", "teacher", "admin")
TERMS = ("odd", "even")

_FIRST_INT = re.compile(r"\d+")


def _first_present(raw: dict, *fields: str) -> Any:
    """First value among `fields` that is neither None nor an empty string.

    Blank strings count as absent, so `{"semester": "", "sem": 4}` reads as
    semester 4 instead of falling through to uncategorized.
    """
    for field in fields:
        value = raw.get(field)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def normalize_semester(raw: dict) -> int:
    """First populated semester field (blank strings skipped); outside 1..8 is 0."""
    value = _first_present(raw, *SEMESTER_FIELDS)
    if isinstance(value, bool):
        number = UNCATEGORIZED_SEMESTER
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    else:
        match = _FIRST_INT.search(str(value if value is not None else ""))
        number = int(match.group(0)) if match else UNCATEGORIZED_SEMESTER
    if number < MIN_SEMESTER or number > MAX_SEMESTER:
        return UNCATEGORIZED_SEMESTER
    return number


def normalize_downloads(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    try:
        return max(0, int(str(value).strip()))
    except (TypeError, ValueError):
        return 0


def normalize_term(value: Any) -> Optional[str]:
    term = _text(value).lower()
    return term if term in TERMS else None


def normalize_role(value: Any) -> Optional[str]:
    role = _text(value).lower()
    return role if role in ROLES else None


def normalize_resource(doc_id: str, raw: Optional[dict]) -> Resource:
    raw = raw or {}
    uploaded_at_raw = _first_present(raw, "uploadedAt", "timestamp")
    return Resource(
        id=str(doc_id),
        file_name=_text(raw.get("fileName"), "Untitled"),
        file_url=_text(_first_present(raw, "fileUrl", "url")),
        file_type=_text(raw.get("fileType"), "file"),
        uploaded_by=_text(_first_present(raw, "uploadedBy", "teacherId")),
        uploader_name=_text(_first_present(raw, "uploaderName", "teacherName")),
        role=normalize_role(raw.get("role")),
        semester=normalize_semester(raw),
        subject=_text(raw.get("subject")),
        subject_code=_text(raw.get("subjectCode")),
        academic_year=_text(raw.get("academicYear")),
        term=normalize_term(raw.get("term")),
        delete_token=_text(raw.get("deleteToken")) or None,
        downloads=normalize_downloads(raw.get("downloads")),
        uploaded_at=to_datetime(uploaded_at_raw),
        uploaded_at_ms=to_millis(uploaded_at_raw),
    )


def normalize_download(doc_id: str, raw: Optional[dict]) -> DownloadEvent:
    raw = raw or {}
    return DownloadEvent(
        id=str(doc_id),
        resource_id=_text(raw.get("resourceId")),
        file_name=_text(raw.get("fileName"), "Untitled"),
        subject=_text(raw.get("subject")),
        semester=normalize_semester(raw),
        file_url=_text(_first_present(raw, "fileUrl", "url")),
        file_type=_text(raw.get("fileType"), "file"),
        downloaded_at=to_datetime(raw.get("downloadedAt")),
        downloaded_at_ms=to_millis(raw.get("downloadedAt")),
    )


def normalize_user(uid: str, raw: Optional[dict]) -> UserProfile:
    raw = raw or {}
    semester = normalize_semester(raw)
    subjects = raw.get("subjects")
    permissions = raw.get("permissions")
    return UserProfile(
        uid=str(uid),
        username=_text(raw.get("username")),
        email=_text(raw.get("email")),
        role=normalize_role(raw.get("role")),
        usn=_text(raw.get("usn")) or None,
        semester=semester or None,
        branch=_text(raw.get("branch")) or None,
        subjects=[_text(s) for s in subjects if _text(s)] if isinstance(subjects, list) else [],
        department=_text(raw.get("department")) or None,
        permissions=[_text(p) for p in permissions if _text(p)] if isinstance(permissions, list) else [],
        blocked=raw.get("blocked") is True,
        created_at=to_datetime(raw.get("createdAt")),
        updated_at=to_datetime(raw.get("updatedAt")),
    )


def resource_to_record(
    *,
    uploader_uid: str,
    uploader_name: str,
    role: Optional[str],
    semester: int,
    subject: str,
    subject_code: str,
    academic_year: str,
    term: str,
    file_url: str,
    delete_token: Optional[str],
    file_name: str,
    file_type: str,
    uploaded_at: Any,
) -> dict:
    """Canonical shape written for new uploads. `teacherId` is kept for older readers."""
    return {
        "fileName": file_name,
        "fileUrl": file_url,
        "fileType": file_type,
        "uploadedBy": uploader_uid,
        "teacherId": uploader_uid,
        "uploaderName": uploader_name,
        "role": role,
        "semester": semester,
        "subject": subject,
        "subjectCode": subject_code,
        "academicYear": academic_year,
        "term": term,
        "deleteToken": delete_token,
        "downloads": 0,
        "uploadedAt": uploaded_at,
    }
