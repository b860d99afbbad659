import logging
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile

from campus_resources.apis.deps import active_actor, get_binary_store, get_document_store
from campus_resources.configs.settings import settings
from campus_resources.schemas.resource_schema import (
    DownloadLinkData, DownloadLinkResponse, ResourceGroup, ResourceGroupResponse,
    ResourceListResponse, SubjectListResponse,
)
from campus_resources.schemas.upload_schema import FileUpload, ResourceUploadForm, WorkflowResult
from campus_resources.schemas.user_schema import Actor
from campus_resources.services.catalog.download_ledger import record_download
from campus_resources.services.catalog.grouping_service import GROUP_KEYS, group_by
from campus_resources.services.catalog.query_service import (
    FilterCriteria, SortOrder, filter_resources, unique_subjects,
)
from campus_resources.services.catalog.resource_cache import get_resource, load_resources
from campus_resources.services.catalog.resource_workflow import delete_resource, upload_resource
from campus_resources.services.externals.cloudinary_service import BinaryStore
from campus_resources.services.stores.document_store import DocumentStore
from campus_resources.services.utils.pagination_service import PaginationService
from campus_resources.services.validation.exception import (
    ResourceNotFoundError, ResourceTransportError, ResourceValidationError,
    not_found_exception, transport_exception, unexpected_exception, validation_exception,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=ResourceListResponse)
async def list_resources_route(
    semester: Optional[int] = Query(None, ge=0, le=8),
    subject: Optional[str] = None,
    academic_year: Optional[str] = None,
    term: Optional[Literal["odd", "even"]] = None,
    q: Optional[str] = None,
    search_subject: bool = False,
    file_type: Optional[str] = None,
    mine: bool = False,
    sort: Optional[SortOrder] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Filtered, sorted and paginated catalog. All filters are optional and
    combined with AND; `mine=true` restricts to the caller's own uploads.
    """
    try:
        resources = await load_resources(store)
    except ResourceTransportError as e:
        await transport_exception(e)

    criteria = FilterCriteria(
        semester=semester,
        subject=subject,
        academic_year=academic_year,
        term=term,
        search=q,
        search_subject=search_subject,
        file_type=file_type,
        uploaded_by=actor.uid if mine else None,
        sort=sort,
    )
    result = PaginationService.get_paginated_data(filter_resources(resources, criteria), page, page_size)
    return ResourceListResponse(
        success=True,
        message="Resource list",
        data=result["items"],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        total_pages=result["total_pages"],
        has_more=result["has_more"],
    )


@router.get("/grouped/", response_model=ResourceGroupResponse)
async def grouped_resources_route(
    by: Literal["subject_code", "subject", "semester", "semester_subject"] = "subject_code",
    semester: Optional[int] = Query(None, ge=0, le=8),
    term: Optional[Literal["odd", "even"]] = None,
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        resources = await load_resources(store)
    except ResourceTransportError as e:
        await transport_exception(e)

    filtered = filter_resources(resources, FilterCriteria(semester=semester, term=term))
    groups = group_by(filtered, GROUP_KEYS[by])
    return ResourceGroupResponse(
        success=True,
        message="Grouped resources",
        data=[ResourceGroup(key=key, count=len(items), resources=items) for key, items in groups],
    )


@router.get("/subjects/", response_model=SubjectListResponse)
async def subjects_route(
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        resources = await load_resources(store)
    except ResourceTransportError as e:
        await transport_exception(e)
    return SubjectListResponse(success=True, message="Subjects", data=unique_subjects(resources))


@router.post("/", response_model=WorkflowResult)
async def upload_resource_route(
    semester: Optional[str] = Form(None),
    subject: str = Form(""),
    subject_code: str = Form(""),
    academic_year: str = Form(""),
    term: str = Form(""),
    file: Optional[UploadFile] = File(None),
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
    binary_store: BinaryStore = Depends(get_binary_store),
):
    form = ResourceUploadForm(
        semester=semester,
        subject=subject,
        subject_code=subject_code,
        academic_year=academic_year,
        term=term,
    )
    upload = None
    if file is not None and file.filename:
        upload = FileUpload(
            filename=file.filename,
            content=await file.read(),
            content_type=file.content_type or "",
        )

    try:
        return await upload_resource(store, binary_store, actor, form, upload)
    except ResourceValidationError as e:
        await validation_exception(e)
    except ResourceTransportError as e:
        await transport_exception(e)
    except Exception as e:
        logger.exception(f"Unexpected error uploading {form.subject_code}: {e}")
        await unexpected_exception()


@router.delete("/{resource_id}/", response_model=WorkflowResult)
async def delete_resource_route(
    resource_id: str,
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
    binary_store: BinaryStore = Depends(get_binary_store),
):
    try:
        resource = await get_resource(store, resource_id)
        return await delete_resource(store, binary_store, actor, resource)
    except ResourceValidationError as e:
        await validation_exception(e)
    except ResourceNotFoundError as e:
        await not_found_exception(str(e))
    except ResourceTransportError as e:
        await transport_exception(e)


@router.post("/{resource_id}/download/", response_model=DownloadLinkResponse)
async def download_resource_route(
    resource_id: str,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(active_actor),
    store: DocumentStore = Depends(get_document_store),
):
    """Returns the file URL; the download ledger write runs after the response."""
    try:
        resource = await get_resource(store, resource_id)
    except ResourceNotFoundError as e:
        await not_found_exception(str(e))
    except ResourceTransportError as e:
        await transport_exception(e)

    background_tasks.add_task(record_download, store, actor, resource)
    return DownloadLinkResponse(
        success=True,
        message="Download link",
        data=DownloadLinkData(resource_id=resource.id, file_url=resource.file_url, file_name=resource.file_name),
    )
