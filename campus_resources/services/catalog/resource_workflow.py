"""
Upload and delete workflows for catalog resources.

Each step commits on its own and is attempted exactly once:

    upload:  validate -> binary upload -> metadata record
    delete:  best-effort binary delete -> metadata delete -> local cache patch

A metadata failure after a successful binary upload leaves an orphaned file
in the binary store; a metadata record may outlive its binary. Both states are
tolerated and only logged.
"""

import asyncio
import logging
from typing import List, Optional

from campus_resources.cores.file_validator import FileValidator
from campus_resources.schemas.resource_schema import Resource
from campus_resources.schemas.upload_schema import FileUpload, ResourceUploadForm, WorkflowResult
from campus_resources.schemas.user_schema import Actor, CascadeDeleteData
from campus_resources.services.catalog.access_policy import can_manage_users, can_mutate, can_upload
from campus_resources.services.catalog.normalizer import (
    MAX_SEMESTER, MIN_SEMESTER, TERMS, resource_to_record,
)
from campus_resources.services.catalog.resource_cache import ResourceCache, load_resources
from campus_resources.services.externals.cloudinary_service import (
    BinaryStore, BinaryStoreError, ProgressCallback,
)
from campus_resources.services.stores.collections import RESOURCES_COLLECTION, USERS_COLLECTION
from campus_resources.services.stores.document_store import (
    SERVER_TIMESTAMP, DocumentNotFoundError, DocumentStore, DocumentStoreError,
)
from campus_resources.services.validation.exception import (
    PermissionDeniedError, ResourceTransportError, ResourceValidationError,
)

logger = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = "Failed to upload resource. Please try again."
DELETE_FAILED_MESSAGE = "Failed to delete. Please try again."


# -----------------------------
# Validation
# -----------------------------
def _parse_semester(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        semester = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return semester if MIN_SEMESTER <= semester <= MAX_SEMESTER else None


def validate_upload(actor: Optional[Actor], form: ResourceUploadForm, file: Optional[FileUpload]) -> int:
    """
    Checks an upload before any network call. Returns the parsed semester.

    Raises:
        PermissionDeniedError: no actor, or a role other than teacher/admin
        ResourceValidationError: missing fields, bad semester/term, bad file
    """
    if actor is None or not actor.uid:
        raise PermissionDeniedError("You must be logged in.")
    if not can_upload(actor):
        raise PermissionDeniedError("You do not have permission to upload.")

    semester_missing = form.semester is None or str(form.semester).strip() == ""
    if semester_missing or not form.subject or not form.subject_code or not form.academic_year or not form.term:
        raise ResourceValidationError("Please fill in all fields.")

    semester = _parse_semester(form.semester)
    if semester is None:
        raise ResourceValidationError(f"Semester must be between {MIN_SEMESTER} and {MAX_SEMESTER}.")
    if form.term.lower() not in TERMS:
        raise ResourceValidationError("Term must be either odd or even.")

    FileValidator.validate_file(file)
    return semester


# -----------------------------
# Upload
# -----------------------------
async def upload_resource(
    store: DocumentStore,
    binary_store: BinaryStore,
    actor: Optional[Actor],
    form: ResourceUploadForm,
    file: Optional[FileUpload],
    progress: Optional[ProgressCallback] = None,
) -> WorkflowResult:
    semester = validate_upload(actor, form, file)

    try:
        uploaded = await binary_store.upload(file, progress)
    except BinaryStoreError as e:
        logger.error(f"Binary upload of {file.filename} by {actor.uid} failed: {e}")
        raise ResourceTransportError(UPLOAD_FAILED_MESSAGE) from e

    record = resource_to_record(
        uploader_uid=actor.uid,
        uploader_name=actor.username,
        role=actor.role,
        semester=semester,
        subject=form.subject,
        subject_code=form.subject_code,
        academic_year=form.academic_year,
        term=form.term.lower(),
        file_url=uploaded.url,
        delete_token=uploaded.delete_token,
        file_name=file.filename,
        file_type=file.content_type,
        uploaded_at=SERVER_TIMESTAMP,
    )
    try:
        resource_id = await store.add(RESOURCES_COLLECTION, record)
    except DocumentStoreError as e:
        logger.error(f"Metadata write failed after upload, orphaned binary left at {uploaded.url}: {e}")
        raise ResourceTransportError(UPLOAD_FAILED_MESSAGE) from e

    logger.info(f"Resource {resource_id} ({file.filename}) uploaded by {actor.uid}")
    return WorkflowResult(
        success=True,
        message="Resource uploaded successfully.",
        resource_id=resource_id,
        file_url=uploaded.url,
    )


# -----------------------------
# Delete
# -----------------------------
async def _delete_binary_quietly(binary_store: BinaryStore, resource: Resource) -> bool:
    if not resource.delete_token:
        return True
    try:
        await binary_store.delete_by_token(resource.delete_token)
        return True
    except Exception as e:
        # token may be expired or already used
        logger.warning(f"Best-effort binary delete for resource {resource.id} failed: {e}")
        return False


async def delete_resource(
    store: DocumentStore,
    binary_store: BinaryStore,
    actor: Optional[Actor],
    resource: Resource,
    cache: Optional[ResourceCache] = None,
) -> WorkflowResult:
    if not can_mutate(actor, resource):
        raise PermissionDeniedError("You do not have permission to delete this resource.")

    await _delete_binary_quietly(binary_store, resource)

    try:
        await store.delete(RESOURCES_COLLECTION, resource.id)
    except DocumentNotFoundError as e:
        logger.warning(f"Resource {resource.id} was already removed: {e}")
        raise ResourceTransportError(DELETE_FAILED_MESSAGE) from e
    except DocumentStoreError as e:
        logger.error(f"Metadata delete for resource {resource.id} failed: {e}")
        raise ResourceTransportError(DELETE_FAILED_MESSAGE) from e

    if cache is not None:
        cache.remove(resource.id)

    logger.info(f"Resource {resource.id} deleted by {actor.uid}")
    return WorkflowResult(success=True, message=f'Deleted "{resource.file_name}".', resource_id=resource.id)


# -----------------------------
# Cascading user deletion
# -----------------------------
async def list_owned_resources(store: DocumentStore, uid: str) -> List[Resource]:
    return [r for r in await load_resources(store) if r.uploaded_by == uid]


async def delete_user_cascade(
    store: DocumentStore,
    binary_store: BinaryStore,
    actor: Optional[Actor],
    uid: str,
    admin_email: str = "",
) -> CascadeDeleteData:
    """
    Deletes a user's profile and then every resource they uploaded.

    Binary and metadata deletes run concurrently; individual failures are
    logged and counted but never stop the others.
    A profile that is already gone does not stop the cascade.
    """
    if not can_manage_users(actor, admin_email):
        raise PermissionDeniedError("You do not have permission to manage users.")

    try:
        await store.delete(USERS_COLLECTION, uid)
    except DocumentNotFoundError:
        # a retried cascade still has uploads to remove
        logger.info(f"Profile {uid} already deleted, continuing with its resources")
    except DocumentStoreError as e:
        logger.error(f"Failed to delete profile {uid}: {e}")
        raise ResourceTransportError("Failed to delete user. Please try again.") from e

    owned = await list_owned_resources(store, uid)
    with_token = [r for r in owned if r.delete_token]

    results = await asyncio.gather(
        *(_delete_binary_quietly(binary_store, r) for r in with_token),
        *(store.delete(RESOURCES_COLLECTION, r.id) for r in owned),
        return_exceptions=True,
    )
    binary_results = results[:len(with_token)]
    metadata_results = results[len(with_token):]

    binaries_failed = sum(1 for ok in binary_results if ok is not True)
    metadata_failed = 0
    for resource, outcome in zip(owned, metadata_results):
        if isinstance(outcome, BaseException):
            metadata_failed += 1
            logger.warning(f"Cascade delete of resource {resource.id} for user {uid} failed: {outcome}")

    logger.info(
        f"User {uid} deleted by {actor.uid}: {len(owned) - metadata_failed}/{len(owned)} resources removed"
    )
    return CascadeDeleteData(
        uid=uid,
        resources_deleted=len(owned) - metadata_failed,
        binaries_failed=binaries_failed,
        metadata_failed=metadata_failed,
    )
