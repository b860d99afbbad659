from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from campus_resources.schemas.resource_schema import Resource

SortOrder = Literal["newest", "oldest", "name", "downloads"]
DEFAULT_SORT: SortOrder = "newest"


class FilterCriteria(BaseModel):
    """
    Independent, conjunctive filters over an in-memory catalog snapshot.

    Every criterion is optional; `None` and empty strings leave the collection
    untouched. `semester=None` means all semesters, uncategorized records
    (semester 0) included; `semester=0` selects only the uncategorized ones.
    """

    semester: Optional[int] = None
    subject: Optional[str] = None
    academic_year: Optional[str] = None
    term: Optional[str] = None
    search: Optional[str] = None
    search_subject: bool = False
    file_type: Optional[str] = None
    uploaded_by: Optional[str] = None
    sort: Optional[SortOrder] = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("subject", "academic_year", "term", "search", "file_type", "uploaded_by")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def matches_file_type(resource: Resource, token: str) -> bool:
    token = token.lower()
    mime = (resource.file_type or "").lower()
    if token == "image":
        return mime.startswith("image/")
    return token in mime or (resource.file_name or "").lower().endswith(token)


def matches(resource: Resource, criteria: FilterCriteria) -> bool:
    if criteria.semester is not None and resource.semester != criteria.semester:
        return False
    if criteria.subject and not _contains(resource.subject, criteria.subject):
        return False
    if criteria.academic_year and not _contains(resource.academic_year, criteria.academic_year):
        return False
    if criteria.term and resource.term != criteria.term.lower():
        return False
    if criteria.search:
        in_name = _contains(resource.file_name, criteria.search)
        in_subject = criteria.search_subject and _contains(resource.subject, criteria.search)
        if not (in_name or in_subject):
            return False
    if criteria.file_type and not matches_file_type(resource, criteria.file_type):
        return False
    if criteria.uploaded_by and resource.uploaded_by != criteria.uploaded_by:
        return False
    return True


def sort_resources(resources: Iterable[Resource], sort: Optional[SortOrder] = None) -> List[Resource]:
    # list.sort is stable, so ties keep the snapshot order
    items = list(resources)
    order = sort or DEFAULT_SORT
    if order == "newest":
        items.sort(key=lambda r: r.uploaded_at_ms, reverse=True)
    elif order == "oldest":
        items.sort(key=lambda r: r.uploaded_at_ms)
    elif order == "name":
        items.sort(key=lambda r: r.file_name.casefold())
    elif order == "downloads":
        items.sort(key=lambda r: r.downloads, reverse=True)
    return items


def filter_resources(resources: Iterable[Resource], criteria: Optional[FilterCriteria] = None) -> List[Resource]:
    criteria = criteria or FilterCriteria()
    return sort_resources((r for r in resources if matches(r, criteria)), criteria.sort)


def unique_subjects(resources: Iterable[Resource]) -> List[str]:
    return sorted({r.subject for r in resources if r.subject}, key=str.casefold)
