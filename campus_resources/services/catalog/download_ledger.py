import asyncio
import logging
from typing import List, Optional

from campus_resources.schemas.resource_schema import DownloadEvent, Resource
from campus_resources.schemas.user_schema import Actor
from campus_resources.services.catalog.normalizer import normalize_download
from campus_resources.services.stores.collections import RESOURCES_COLLECTION, downloads_collection
from campus_resources.services.stores.document_store import (
    SERVER_TIMESTAMP, DocumentStore, DocumentStoreError, Increment,
)
from campus_resources.services.validation.exception import ResourceTransportError

logger = logging.getLogger(__name__)


def download_record(resource: Resource) -> dict:
    return {
        "resourceId": resource.id,
        "fileName": resource.file_name,
        "subject": resource.subject,
        "semester": resource.semester,
        "fileUrl": resource.file_url,
        "fileType": resource.file_type,
        "downloadedAt": SERVER_TIMESTAMP,
    }


async def record_download(store: DocumentStore, actor: Optional[Actor], resource: Resource) -> bool:
    """
    Appends a download event under the actor and bumps the resource counter.

    The two writes are independent analytics writes: each one that fails is
    logged and skipped. Returns True only when both succeeded. Never raises.
    """
    if actor is None or not actor.uid:
        return False

    logged = True
    try:
        await store.add(downloads_collection(actor.uid), download_record(resource))
    except Exception as e:
        logged = False
        logger.warning(f"Download event for {resource.id} by {actor.uid} not recorded: {e}")

    counted = True
    try:
        await store.update(RESOURCES_COLLECTION, resource.id, {"downloads": Increment(1)})
    except Exception as e:
        counted = False
        logger.warning(f"Download counter of {resource.id} not incremented: {e}")

    return logged and counted


def schedule_download(store: DocumentStore, actor: Optional[Actor], resource: Resource) -> "asyncio.Task[bool]":
    """Fire-and-forget variant; await the returned task only if the outcome matters."""
    return asyncio.get_running_loop().create_task(record_download(store, actor, resource))


async def list_downloads(store: DocumentStore, uid: str) -> List[DownloadEvent]:
    try:
        snapshot = await store.list(downloads_collection(uid))
    except DocumentStoreError as e:
        logger.error(f"Failed to load downloads of {uid}: {e}")
        raise ResourceTransportError("Failed to load your downloads. Please try again.") from e
    events = [normalize_download(doc_id, data) for doc_id, data in snapshot]
    events.sort(key=lambda event: event.downloaded_at_ms, reverse=True)
    return events
