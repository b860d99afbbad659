"""
Row-level mutation rights over catalog resources.

These checks are advisory: they decide what the service offers to an actor,
while the authoritative rules belong to the store. The actor's current role
is used; the role snapshotted on a resource at upload time is ignored.
"""

from typing import Optional

from campus_resources.schemas.resource_schema import Resource
from campus_resources.schemas.user_schema import Actor

UPLOAD_ROLES = ("teacher", "admin")


def can_mutate(actor: Optional[Actor], resource: Resource) -> bool:
    if actor is None or not actor.uid or actor.role is None:
        return False
    if actor.role == "admin":
        return True
    if actor.role == "teacher":
        return bool(resource.uploaded_by) and resource.uploaded_by == actor.uid
    return False


def can_upload(actor: Optional[Actor]) -> bool:
    return actor is not None and bool(actor.uid) and actor.role in UPLOAD_ROLES


def can_manage_users(actor: Optional[Actor], admin_email: str = "") -> bool:
    if actor is None or not actor.uid or actor.role != "admin":
        return False
    if admin_email:
        return actor.email.strip().lower() == admin_email.strip().lower()
    return True
