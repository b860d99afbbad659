import pytest

from campus_resources.schemas.upload_schema import FileUpload, ResourceUploadForm
from campus_resources.schemas.user_schema import Actor
from campus_resources.services.catalog.resource_cache import ResourceCache, get_resource, load_resources
from campus_resources.services.catalog.resource_workflow import (
    UPLOAD_FAILED_MESSAGE, delete_resource, delete_user_cascade, upload_resource, validate_upload,
)
from campus_resources.services.stores.collections import RESOURCES_COLLECTION, USERS_COLLECTION
from campus_resources.services.validation.exception import (
    PermissionDeniedError, ResourceTransportError, ResourceValidationError,
)
from tests.fakes import ADMIN, OTHER_TEACHER, PDF, STUDENT, TEACHER, FailingWrites, FakeBinaryStore


def _form(**overrides):
    values = {
        "semester": "3",
        "subject": "Data Structures",
        "subject_code": "CS301",
        "academic_year": "2024-25",
        "term": "odd",
    }
    values.update(overrides)
    return ResourceUploadForm(**values)


@pytest.mark.parametrize("actor, form, file, message", [
    (None, _form(), PDF, "You must be logged in."),
    (STUDENT, _form(), PDF, "You do not have permission to upload."),
    (TEACHER, _form(subject=" "), PDF, "Please fill in all fields."),
    (TEACHER, _form(semester=None), PDF, "Please fill in all fields."),
    (TEACHER, _form(semester="9"), PDF, "Semester must be between 1 and 8."),
    (TEACHER, _form(semester="abc"), PDF, "Semester must be between 1 and 8."),
    (TEACHER, _form(term="summer"), PDF, "Term must be either odd or even."),
    (TEACHER, _form(), None, "Please select a file to upload."),
    (TEACHER, _form(), FileUpload("empty.pdf", b"", "application/pdf"), "The file empty.pdf is empty."),
])
def test_validate_upload_messages(actor, form, file, message):
    with pytest.raises(ResourceValidationError) as exc:
        validate_upload(actor, form, file)
    assert str(exc.value) == message


def test_validate_upload_permission_errors_are_typed():
    with pytest.raises(PermissionDeniedError):
        validate_upload(STUDENT, _form(), PDF)


def test_validate_upload_returns_semester():
    assert validate_upload(TEACHER, _form(semester=" 5 "), PDF) == 5


async def test_unsupported_type_makes_no_network_call(store):
    binary = FakeBinaryStore()
    archive = FileUpload("notes.zip", b"PK\x03\x04", "application/zip")

    with pytest.raises(ResourceValidationError) as exc:
        await upload_resource(store, binary, TEACHER, _form(), archive)

    assert "Unsupported file type" in str(exc.value)
    assert binary.uploads == []
    assert await store.list(RESOURCES_COLLECTION) == []


async def test_upload_writes_canonical_record(store):
    binary = FakeBinaryStore()
    progress = []

    result = await upload_resource(store, binary, TEACHER, _form(term="ODD"), PDF, progress.append)

    assert result.success is True
    assert progress == [0, 100]
    resource = await get_resource(store, result.resource_id)
    assert resource.uploaded_by == TEACHER.uid
    assert resource.uploader_name == "Tara"
    assert resource.semester == 3
    assert resource.term == "odd"
    assert resource.file_url == result.file_url
    assert resource.delete_token == "tok-1"
    assert resource.downloads == 0
    assert resource.uploaded_at_ms > 0
    raw = await store.get(RESOURCES_COLLECTION, result.resource_id)
    assert raw["teacherId"] == TEACHER.uid


async def test_binary_failure_writes_no_metadata(store):
    with pytest.raises(ResourceTransportError) as exc:
        await upload_resource(store, FakeBinaryStore(fail_upload=True), TEACHER, _form(), PDF)

    assert str(exc.value) == UPLOAD_FAILED_MESSAGE
    assert await store.list(RESOURCES_COLLECTION) == []


async def test_metadata_failure_after_binary_upload(store):
    binary = FakeBinaryStore()
    with pytest.raises(ResourceTransportError):
        await upload_resource(FailingWrites(store, fail_on={"add"}), binary, TEACHER, _form(), PDF)
    assert len(binary.uploads) == 1


async def _seed(store, doc_id, uploaded_by, delete_token="tok"):
    await store.set(RESOURCES_COLLECTION, doc_id, {
        "fileName": f"{doc_id}.pdf",
        "uploadedBy": uploaded_by,
        "deleteToken": delete_token,
        "semester": 3,
    })


async def test_delete_denied_for_other_teacher(store):
    await _seed(store, "r1", TEACHER.uid)
    binary = FakeBinaryStore()
    resource = await get_resource(store, "r1")

    with pytest.raises(PermissionDeniedError):
        await delete_resource(store, binary, OTHER_TEACHER, resource)

    assert binary.deleted_tokens == []
    assert await store.get(RESOURCES_COLLECTION, "r1") is not None


async def test_delete_survives_binary_failure_and_updates_cache(store):
    await _seed(store, "r1", TEACHER.uid, delete_token="expired")
    await _seed(store, "r2", TEACHER.uid)
    cache = ResourceCache()
    await cache.refresh(store)
    binary = FakeBinaryStore(failing_tokens={"expired"})

    result = await delete_resource(store, binary, TEACHER, cache.get("r1"), cache)

    assert result.success is True
    assert binary.deleted_tokens == ["expired"]
    assert await store.get(RESOURCES_COLLECTION, "r1") is None
    assert [r.id for r in cache] == ["r2"]


async def test_delete_metadata_failure_keeps_cache(store):
    await _seed(store, "r1", TEACHER.uid)
    cache = ResourceCache()
    await cache.refresh(store)

    with pytest.raises(ResourceTransportError):
        await delete_resource(FailingWrites(store), FakeBinaryStore(), ADMIN, cache.get("r1"), cache)

    assert cache.get("r1") is not None


async def test_admin_deletes_any_resource_without_token(store):
    await _seed(store, "r1", TEACHER.uid, delete_token=None)
    binary = FakeBinaryStore()

    await delete_resource(store, binary, ADMIN, await get_resource(store, "r1"))

    assert binary.deleted_tokens == []
    assert await load_resources(store) == []


async def test_cascade_delete_removes_profile_and_uploads(store):
    await store.set(USERS_COLLECTION, TEACHER.uid, {"role": "teacher", "email": TEACHER.email})
    await _seed(store, "r1", TEACHER.uid, delete_token="t1")
    await _seed(store, "r2", TEACHER.uid, delete_token="bad")
    await store.set(RESOURCES_COLLECTION, "r3", {"teacherId": TEACHER.uid, "deleteToken": "t3"})
    await _seed(store, "keep", OTHER_TEACHER.uid)
    binary = FakeBinaryStore(failing_tokens={"bad"})
    counting = FailingWrites(store, fail_on=())

    result = await delete_user_cascade(counting, binary, ADMIN, TEACHER.uid)

    metadata_deletes = [args for name, args in counting.calls if name == "delete" and args[0] == RESOURCES_COLLECTION]
    assert len(metadata_deletes) == 3
    assert sorted(binary.deleted_tokens) == ["bad", "t1", "t3"]
    assert result.resources_deleted == 3
    assert result.binaries_failed == 1
    assert result.metadata_failed == 0
    assert await store.get(USERS_COLLECTION, TEACHER.uid) is None
    assert [r.id for r in await load_resources(store)] == ["keep"]


async def test_cascade_delete_requires_admin(store):
    await store.set(USERS_COLLECTION, TEACHER.uid, {"role": "teacher"})

    with pytest.raises(PermissionDeniedError):
        await delete_user_cascade(store, FakeBinaryStore(), TEACHER, TEACHER.uid)
    with pytest.raises(PermissionDeniedError):
        await delete_user_cascade(store, FakeBinaryStore(), ADMIN, TEACHER.uid, admin_email="root@campus.edu")

    assert await store.get(USERS_COLLECTION, TEACHER.uid) is not None


async def test_cascade_delete_unknown_user_is_a_noop(store):
    result = await delete_user_cascade(store, FakeBinaryStore(), ADMIN, "ghost")

    assert result.resources_deleted == 0
    assert result.metadata_failed == 0


async def test_cascade_retry_removes_leftovers_without_profile(store):
    await _seed(store, "left-1", TEACHER.uid, delete_token="t1")
    await _seed(store, "left-2", TEACHER.uid, delete_token=None)
    await _seed(store, "keep", OTHER_TEACHER.uid)
    binary = FakeBinaryStore()

    result = await delete_user_cascade(store, binary, ADMIN, TEACHER.uid)

    assert result.resources_deleted == 2
    assert binary.deleted_tokens == ["t1"]
    assert [r.id for r in await load_resources(store)] == ["keep"]


async def test_teacher_demoted_to_student_loses_delete_rights(store):
    await _seed(store, "r1", TEACHER.uid)
    demoted = Actor(uid=TEACHER.uid, role="student")

    with pytest.raises(PermissionDeniedError):
        await delete_resource(store, FakeBinaryStore(), demoted, await get_resource(store, "r1"))


async def test_attached_cache_follows_store_changes(store):
    cache = ResourceCache()
    await cache.attach(store)

    await _seed(store, "r1", TEACHER.uid)
    assert [r.id for r in cache] == ["r1"]

    await store.delete(RESOURCES_COLLECTION, "r1")
    assert len(cache) == 0

    cache.detach()
    await _seed(store, "r2", TEACHER.uid)
    assert len(cache) == 0
