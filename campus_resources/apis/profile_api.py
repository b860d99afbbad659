from fastapi import APIRouter, Depends

from campus_resources.apis.deps import auth_required, get_document_store
from campus_resources.configs.settings import settings
from campus_resources.schemas.user_schema import Actor, UserProfileCreateRequest, UserProfileResponse
from campus_resources.services.stores.document_store import DocumentStore
from campus_resources.services.users.profile_service import create_user_profile, get_profile
from campus_resources.services.validation.exception import (
    ResourceTransportError, ResourceValidationError,
    not_found_exception, transport_exception, validation_exception,
)

router = APIRouter()


@router.post("/", response_model=UserProfileResponse)
async def create_profile_route(
    data: UserProfileCreateRequest,
    actor: Actor = Depends(auth_required),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Registers the profile of the authenticated account.
    The email claim of the token wins over the submitted one.
    """
    try:
        if await get_profile(store, actor.uid) is not None:
            raise ResourceValidationError("Profile already exists.")
        if actor.email:
            data = data.model_copy(update={"email": actor.email})
        profile = await create_user_profile(store, actor.uid, data, settings.ADMIN_EMAIL)
    except ResourceValidationError as e:
        await validation_exception(e)
    except ResourceTransportError as e:
        await transport_exception(e)
    return UserProfileResponse(success=True, message="Profile created", data=profile)


@router.get("/me/", response_model=UserProfileResponse)
async def my_profile_route(
    actor: Actor = Depends(auth_required),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        profile = await get_profile(store, actor.uid)
    except ResourceTransportError as e:
        await transport_exception(e)
    if profile is None:
        await not_found_exception("Profile not found")
    return UserProfileResponse(success=True, message="Profile", data=profile)
