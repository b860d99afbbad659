from collections import Counter
from typing import Iterable, List, Tuple

from campus_resources.schemas.resource_schema import Resource
from campus_resources.schemas.user_schema import CatalogStats, UserProfile
from campus_resources.services.catalog.normalizer import MAX_SEMESTER

TOP_N = 10


def uploads_per_semester(resources: Iterable[Resource]) -> List[int]:
    counts = [0] * MAX_SEMESTER
    for resource in resources:
        if resource.semester:
            counts[resource.semester - 1] += 1
    return counts


def uploads_per_teacher(resources: Iterable[Resource], limit: int = TOP_N) -> List[Tuple[str, int]]:
    counter = Counter(r.uploader_name or r.uploaded_by or "Unknown" for r in resources)
    return counter.most_common(limit)


def top_downloads(resources: Iterable[Resource], limit: int = TOP_N) -> List[Resource]:
    return sorted(resources, key=lambda r: r.downloads, reverse=True)[:limit]


def catalog_stats(resources: List[Resource], users: List[UserProfile]) -> CatalogStats:
    users_by_role = Counter(u.role or "unknown" for u in users)
    return CatalogStats(
        total_resources=len(resources),
        total_downloads=sum(r.downloads for r in resources),
        uploads_per_semester=uploads_per_semester(resources),
        uploads_per_teacher=uploads_per_teacher(resources),
        top_downloads=top_downloads(resources),
        users_by_role=dict(users_by_role),
        blocked_users=sum(1 for u in users if u.blocked),
    )
