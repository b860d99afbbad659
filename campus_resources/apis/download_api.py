from fastapi import APIRouter, Depends

from campus_resources.apis.deps import active_actor, get_document_store
from campus_resources.schemas.resource_schema import DownloadListResponse
from campus_resources.schemas.user_schema import Actor
from campus_resources.services.catalog.download_ledger import list_downloads
from campus_resources.services.stores.document_store import DocumentStore
from campus_resources.services.validation.exception import ResourceTransportError, transport_exception

router = APIRouter()


@router.get("/me/", response_model=DownloadListResponse)
async def my_downloads_route(
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        events = await list_downloads(store, actor.uid)
    except ResourceTransportError as e:
        await transport_exception(e)
    return DownloadListResponse(success=True, message="Download history", data=events, total=len(events))
