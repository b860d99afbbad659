import unicodedata
from typing import Callable, Iterable, List, Optional, Tuple

from campus_resources.schemas.resource_schema import Resource
from campus_resources.services.catalog.query_service import FilterCriteria
from campus_resources.services.utils.pagination_service import PaginationService

UNCATEGORIZED = "uncategorized"

KeyFn = Callable[[Resource], Optional[str]]


def collation_key(text: str) -> Tuple[str, str]:
    """Accent and case insensitive ordering, ties broken by the raw text."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


def subject_code_key(resource: Resource) -> Optional[str]:
    return resource.subject_code or None


def subject_key(resource: Resource) -> Optional[str]:
    return resource.subject or None


def semester_key(resource: Resource) -> Optional[str]:
    return f"Sem {resource.semester}" if resource.semester else None


def semester_subject_key(resource: Resource) -> Optional[str]:
    if not resource.semester:
        return None
    return f"Sem {resource.semester} • {resource.subject or '-'}"


GROUP_KEYS = {
    "subject_code": subject_code_key,
    "subject": subject_key,
    "semester": semester_key,
    "semester_subject": semester_subject_key,
}


def group_by(
    resources: Iterable[Resource],
    key_fn: KeyFn,
    sentinel: str = UNCATEGORIZED,
) -> List[Tuple[str, List[Resource]]]:
    """
    Buckets resources by `key_fn`, keeping each bucket in input order.
    Keys are collated; records without a key land under `sentinel`, always last.
    """
    buckets: dict[str, List[Resource]] = {}
    unkeyed: List[Resource] = []
    for resource in resources:
        key = key_fn(resource)
        if key is None or not str(key).strip():
            unkeyed.append(resource)
            continue
        buckets.setdefault(str(key).strip(), []).append(resource)

    groups = sorted(buckets.items(), key=lambda item: collation_key(item[0]))
    if unkeyed:
        groups.append((sentinel, unkeyed))
    return groups


class CatalogViewState:
    """
    Filter and paging state of one catalog view.

    Changing any criterion or the page size sends the view back to page 1.
    """

    def __init__(self, criteria: Optional[FilterCriteria] = None, page_size: int = 10):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._criteria = criteria or FilterCriteria()
        self._page_size = page_size
        self._page = 1

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    def set_criteria(self, **changes) -> FilterCriteria:
        updated = FilterCriteria.model_validate({**self._criteria.model_dump(), **changes})
        if updated != self._criteria:
            self._criteria = updated
            self._page = 1
        return self._criteria

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        if page_size != self._page_size:
            self._page_size = page_size
            self._page = 1

    def go_to(self, page: int) -> None:
        self._page = max(page, 1)

    def view(self, filtered: List[Resource]) -> dict:
        return PaginationService.get_paginated_data(filtered, self._page, self._page_size)
