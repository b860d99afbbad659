import pytest

from campus_resources.cores.token import InvalidTokenError, create_access_token
from campus_resources.schemas.user_schema import UserProfileCreateRequest
from campus_resources.services.stores.collections import USERS_COLLECTION
from campus_resources.services.users.identity_service import IdentityProvider
from campus_resources.services.users.profile_service import create_user_profile, list_users, set_user_blocked
from campus_resources.services.validation.exception import (
    PermissionDeniedError, ResourceNotFoundError, ResourceValidationError,
)
from tests.fakes import ADMIN, TEACHER


async def test_create_student_profile(store):
    profile = await create_user_profile(store, "s1", UserProfileCreateRequest(
        email="s1@campus.edu", username="Sam", role="student", usn="1XX21CS001", semester=3,
    ))

    assert profile.role == "student"
    assert profile.usn == "1XX21CS001"
    assert profile.semester == 3
    assert profile.blocked is False
    assert profile.created_at is not None


async def test_create_admin_profile_needs_designated_email(store):
    request = UserProfileCreateRequest(email="someone@campus.edu", username="Eve", role="admin")

    with pytest.raises(ResourceValidationError):
        await create_user_profile(store, "a1", request, admin_email="admin@campus.edu")
    assert await store.get(USERS_COLLECTION, "a1") is None

    ok = UserProfileCreateRequest(email="Admin@campus.edu", username="Ada", role="admin")
    profile = await create_user_profile(store, "a2", ok, admin_email="admin@campus.edu")
    assert profile.permissions == ["manage_users", "manage_resources", "manage_system"]


async def test_block_and_unblock(store):
    await store.set(USERS_COLLECTION, "t-1", {"role": "teacher", "email": "t@campus.edu"})

    blocked = await set_user_blocked(store, ADMIN, "t-1", True)
    assert blocked.blocked is True
    assert blocked.role == "teacher"

    unblocked = await set_user_blocked(store, ADMIN, "t-1", False)
    assert unblocked.blocked is False


async def test_block_requires_admin_and_existing_user(store):
    await store.set(USERS_COLLECTION, "t-1", {"role": "teacher"})

    with pytest.raises(PermissionDeniedError):
        await set_user_blocked(store, TEACHER, "t-1", True)
    with pytest.raises(ResourceNotFoundError):
        await set_user_blocked(store, ADMIN, "ghost", True)


async def test_list_users(store):
    await store.set(USERS_COLLECTION, "a", {"role": "student"})
    await store.set(USERS_COLLECTION, "b", {"role": "teacher"})

    assert [u.uid for u in await list_users(store)] == ["a", "b"]


async def test_resolve_actor_uses_live_profile(store):
    await store.set(USERS_COLLECTION, "t-1", {"role": "teacher", "username": "Tara", "email": "t@campus.edu"})
    identity = IdentityProvider(store)

    actor = await identity.resolve_actor(create_access_token("t-1", "t@campus.edu"))
    assert actor.uid == "t-1"
    assert actor.role == "teacher"
    assert actor.username == "Tara"

    await store.update(USERS_COLLECTION, "t-1", {"role": "student"})
    assert (await identity.resolve_actor(create_access_token("t-1"))).role == "student"


async def test_blocked_or_missing_profile_has_no_role(store):
    await store.set(USERS_COLLECTION, "t-1", {"role": "teacher", "blocked": True})
    identity = IdentityProvider(store)

    assert (await identity.resolve_actor(create_access_token("t-1"))).role is None
    assert await identity.get_role("t-1") is None

    nobody = await identity.resolve_actor(create_access_token("nobody", "n@campus.edu"))
    assert nobody.uid == "nobody"
    assert nobody.role is None
    assert nobody.email == "n@campus.edu"


async def test_invalid_token(store):
    with pytest.raises(InvalidTokenError):
        await IdentityProvider(store).resolve_actor("not-a-token")
