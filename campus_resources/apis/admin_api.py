from fastapi import APIRouter, Depends

from campus_resources.apis.deps import admin_required, get_binary_store, get_document_store
from campus_resources.configs.settings import settings
from campus_resources.schemas.user_schema import (
    Actor, CascadeDeleteResponse, CatalogStatsResponse, UserBlockRequest,
    UserBlockResponse, UserListResponse,
)
from campus_resources.services.catalog.analytics_service import catalog_stats
from campus_resources.services.catalog.resource_cache import load_resources
from campus_resources.services.catalog.resource_workflow import delete_user_cascade
from campus_resources.services.externals.cloudinary_service import BinaryStore
from campus_resources.services.stores.document_store import DocumentStore
from campus_resources.services.users.profile_service import list_users, set_user_blocked
from campus_resources.services.validation.exception import (
    ResourceNotFoundError, ResourceTransportError, ResourceValidationError,
    not_found_exception, transport_exception, validation_exception,
)

router = APIRouter()


@router.get("/users/", response_model=UserListResponse)
async def list_users_route(
    actor: Actor = Depends(admin_required),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        users = await list_users(store)
    except ResourceTransportError as e:
        await transport_exception(e)
    return UserListResponse(success=True, message="User list", data=users)


@router.patch("/users/{uid}/block/", response_model=UserBlockResponse)
async def block_user_route(
    uid: str,
    data: UserBlockRequest,
    actor: Actor = Depends(admin_required),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        profile = await set_user_blocked(store, actor, uid, data.blocked, settings.ADMIN_EMAIL)
    except ResourceValidationError as e:
        await validation_exception(e)
    except ResourceNotFoundError as e:
        await not_found_exception(str(e))
    except ResourceTransportError as e:
        await transport_exception(e)

    message = "User blocked" if data.blocked else "User unblocked"
    return UserBlockResponse(success=True, message=message, data=profile)


@router.delete("/users/{uid}/", response_model=CascadeDeleteResponse)
async def delete_user_route(
    uid: str,
    actor: Actor = Depends(admin_required),
    store: DocumentStore = Depends(get_document_store),
    binary_store: BinaryStore = Depends(get_binary_store),
):
    """Removes the profile and every resource the user uploaded."""
    try:
        result = await delete_user_cascade(store, binary_store, actor, uid, settings.ADMIN_EMAIL)
    except ResourceValidationError as e:
        await validation_exception(e)
    except ResourceNotFoundError as e:
        await not_found_exception(str(e))
    except ResourceTransportError as e:
        await transport_exception(e)
    return CascadeDeleteResponse(success=True, message="User deleted", data=result)


@router.get("/stats/", response_model=CatalogStatsResponse)
async def stats_route(
    actor: Actor = Depends(admin_required),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        resources = await load_resources(store)
        users = await list_users(store)
    except ResourceTransportError as e:
        await transport_exception(e)
    return CatalogStatsResponse(success=True, message="Catalog statistics", data=catalog_stats(resources, users))
