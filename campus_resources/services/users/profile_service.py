import logging
from typing import List, Optional

from campus_resources.schemas.user_schema import (
    ADMIN_PERMISSIONS, Actor, UserProfile, UserProfileCreateRequest,
)
from campus_resources.services.catalog.access_policy import can_manage_users
from campus_resources.services.catalog.normalizer import normalize_user
from campus_resources.services.stores.collections import USERS_COLLECTION
from campus_resources.services.stores.document_store import (
    SERVER_TIMESTAMP, DocumentNotFoundError, DocumentStore, DocumentStoreError,
)
from campus_resources.services.validation.exception import (
    PermissionDeniedError, ResourceNotFoundError, ResourceTransportError, ResourceValidationError,
)

logger = logging.getLogger(__name__)


async def create_user_profile(
    store: DocumentStore,
    uid: str,
    data: UserProfileCreateRequest,
    admin_email: str = "",
) -> UserProfile:
    """
    Writes the profile record of a freshly registered account.
    Role specific fields: usn/semester for students, subjects for teachers,
    the fixed permission set for the admin.
    """
    email = data.email.strip()
    if data.role == "admin" and admin_email and email.lower() != admin_email.strip().lower():
        raise ResourceValidationError("Only the designated admin email can sign up as admin.")

    record = {
        "uid": uid,
        "email": email,
        "username": data.username.strip(),
        "role": data.role,
        "blocked": False,
        "createdAt": SERVER_TIMESTAMP,
        "updatedAt": SERVER_TIMESTAMP,
    }
    if data.role == "student":
        if data.usn:
            record["usn"] = data.usn.strip()
        if data.semester:
            record["semester"] = data.semester
    elif data.role == "teacher" and data.subjects:
        record["subjects"] = [s.strip() for s in data.subjects if s.strip()]
    elif data.role == "admin":
        record["permissions"] = list(ADMIN_PERMISSIONS)

    try:
        await store.set(USERS_COLLECTION, uid, record)
    except DocumentStoreError as e:
        logger.error(f"Failed to create profile {uid}: {e}")
        raise ResourceTransportError("Failed to create the profile. Please try again.") from e

    logger.info(f"Profile {uid} created with role {data.role}")
    return await get_profile(store, uid) or normalize_user(uid, record)


async def get_profile(store: DocumentStore, uid: str) -> Optional[UserProfile]:
    try:
        raw = await store.get(USERS_COLLECTION, uid)
    except DocumentStoreError as e:
        raise ResourceTransportError("Failed to load the profile. Please try again.") from e
    return normalize_user(uid, raw) if raw is not None else None


async def list_users(store: DocumentStore) -> List[UserProfile]:
    try:
        snapshot = await store.list(USERS_COLLECTION)
    except DocumentStoreError as e:
        logger.error(f"Failed to list users: {e}")
        raise ResourceTransportError("Failed to load users. Please try again.") from e
    return [normalize_user(uid, data) for uid, data in snapshot]


async def set_user_blocked(
    store: DocumentStore,
    actor: Optional[Actor],
    uid: str,
    blocked: bool,
    admin_email: str = "",
) -> UserProfile:
    if not can_manage_users(actor, admin_email):
        raise PermissionDeniedError("You do not have permission to manage users.")
    try:
        await store.update(USERS_COLLECTION, uid, {"blocked": blocked, "updatedAt": SERVER_TIMESTAMP})
    except DocumentNotFoundError as e:
        raise ResourceNotFoundError(f"User {uid} not found") from e
    except DocumentStoreError as e:
        logger.error(f"Failed to update blocked flag of {uid}: {e}")
        raise ResourceTransportError("Failed to update the user. Please try again.") from e

    logger.info(f"User {uid} {'blocked' if blocked else 'unblocked'} by {actor.uid}")
    profile = await get_profile(store, uid)
    if profile is None:
        raise ResourceNotFoundError(f"User {uid} not found")
    return profile
