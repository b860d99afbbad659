import logging
from typing import Callable, Iterator, List, Optional

from campus_resources.schemas.resource_schema import Resource
from campus_resources.services.catalog.normalizer import normalize_resource
from campus_resources.services.catalog.query_service import sort_resources
from campus_resources.services.stores.collections import RESOURCES_COLLECTION
from campus_resources.services.stores.document_store import DocumentStore, DocumentStoreError, Snapshot
from campus_resources.services.validation.exception import ResourceNotFoundError, ResourceTransportError

logger = logging.getLogger(__name__)


def resources_from_snapshot(snapshot: Snapshot) -> List[Resource]:
    return sort_resources(normalize_resource(doc_id, data) for doc_id, data in snapshot)


async def load_resources(store: DocumentStore) -> List[Resource]:
    try:
        snapshot = await store.list(RESOURCES_COLLECTION)
    except DocumentStoreError as e:
        logger.error(f"Failed to load resources: {e}")
        raise ResourceTransportError("Failed to load resources. Please try again.") from e
    return resources_from_snapshot(snapshot)


async def get_resource(store: DocumentStore, resource_id: str) -> Resource:
    try:
        raw = await store.get(RESOURCES_COLLECTION, resource_id)
    except DocumentStoreError as e:
        raise ResourceTransportError("Failed to load the resource. Please try again.") from e
    if raw is None:
        raise ResourceNotFoundError(f"Resource {resource_id} not found")
    return normalize_resource(resource_id, raw)


class ResourceCache:
    """
    Local snapshot of the `resources` collection owned by a single view.

    Filled by a one-shot `refresh` or kept live with `attach`. Mutations are
    applied by the caller through `remove` once the remote call succeeded;
    different caches are never reconciled with each other.
    """

    def __init__(self, resources: Optional[List[Resource]] = None):
        self._items: List[Resource] = list(resources or [])
        self._unsubscribe: Optional[Callable[[], None]] = None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._items))

    @property
    def items(self) -> List[Resource]:
        return list(self._items)

    def replace(self, resources: List[Resource]) -> None:
        self._items = list(resources)

    def replace_from_snapshot(self, snapshot: Snapshot) -> None:
        self._items = resources_from_snapshot(snapshot)

    def get(self, resource_id: str) -> Optional[Resource]:
        return next((r for r in self._items if r.id == resource_id), None)

    def remove(self, resource_id: str) -> bool:
        before = len(self._items)
        self._items = [r for r in self._items if r.id != resource_id]
        return len(self._items) != before

    async def refresh(self, store: DocumentStore) -> List[Resource]:
        self._items = await load_resources(store)
        return self.items

    async def attach(self, store: DocumentStore) -> None:
        self.detach()
        self._unsubscribe = await store.subscribe(RESOURCES_COLLECTION, self.replace_from_snapshot)

    def detach(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
