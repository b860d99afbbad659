from datetime import datetime, timezone

import pytest

from campus_resources.services.catalog.normalizer import (
    normalize_download, normalize_resource, normalize_semester, normalize_user, resource_to_record,
)


@pytest.mark.parametrize("raw, expected", [
    ({"semester": 3}, 3),
    ({"semester": "5"}, 5),
    ({"sem": "Sem 4"}, 4),
    ({"semesterNo": 7.0}, 7),
    ({"semNo": "2nd semester"}, 2),
    ({"semester_number": 6}, 6),
    ({"semesterIndex": "8"}, 8),
    ({"semester": 9}, 0),
    ({"semester": 0}, 0),
    ({"semester": "none"}, 0),
    ({"semester": True}, 0),
    ({}, 0),
])
def test_normalize_semester(raw, expected):
    assert normalize_semester(raw) == expected


def test_first_present_semester_field_wins():
    assert normalize_semester({"semester": "", "sem": 3, "semNo": 6}) == 3


def test_normalize_resource_legacy_fields():
    resource = normalize_resource("r1", {
        "url": "https://cdn.test/a.pdf",
        "teacherId": "t-1",
        "teacherName": "Tara",
        "timestamp": "2024-03-01T10:00:00Z",
        "semester": "3",
        "term": "ODD",
        "downloads": "4",
    })

    assert resource.file_url == "https://cdn.test/a.pdf"
    assert resource.uploaded_by == "t-1"
    assert resource.uploader_name == "Tara"
    assert resource.semester == 3
    assert resource.term == "odd"
    assert resource.downloads == 4
    assert resource.uploaded_at == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert resource.uploaded_at_ms == 1709287200000


def test_normalize_resource_prefers_current_fields():
    resource = normalize_resource("r1", {
        "fileUrl": "https://new", "url": "https://old",
        "uploadedBy": "t-2", "teacherId": "t-1",
    })
    assert resource.file_url == "https://new"
    assert resource.uploaded_by == "t-2"


def test_normalize_resource_is_total():
    resource = normalize_resource("r1", None)

    assert resource.id == "r1"
    assert resource.file_name == "Untitled"
    assert resource.file_type == "file"
    assert resource.semester == 0
    assert resource.downloads == 0
    assert resource.term is None
    assert resource.role is None
    assert resource.uploaded_at is None
    assert resource.uploaded_at_ms == 0


def test_normalize_resource_garbage_values():
    resource = normalize_resource("r1", {
        "downloads": -3, "role": "janitor", "term": "summer", "uploadedAt": {"nope": 1},
    })
    assert resource.downloads == 0
    assert resource.role is None
    assert resource.term is None
    assert resource.uploaded_at_ms == 0


def test_normalize_resource_firestore_timestamp_mapping():
    resource = normalize_resource("r1", {"uploadedAt": {"seconds": 1700000000, "nanoseconds": 0}})
    assert resource.uploaded_at_ms == 1700000000000


def test_normalize_download():
    event = normalize_download("d1", {
        "resourceId": "r1", "fileName": "notes.pdf", "semester": 2,
        "downloadedAt": "2024-01-01T00:00:00+00:00",
    })
    assert event.resource_id == "r1"
    assert event.semester == 2
    assert event.downloaded_at_ms == 1704067200000


def test_normalize_user_blocked_must_be_true():
    assert normalize_user("u1", {"blocked": "yes"}).blocked is False
    assert normalize_user("u1", {"blocked": True}).blocked is True


def test_normalize_user_role_specific_fields():
    user = normalize_user("u1", {"role": "Teacher", "subjects": ["Maths", " ", "Physics"]})
    assert user.role == "teacher"
    assert user.subjects == ["Maths", "Physics"]
    assert user.semester is None


def test_resource_to_record_round_trips_through_normalizer():
    record = resource_to_record(
        uploader_uid="t-1", uploader_name="Tara", role="teacher", semester=4,
        subject="Networks", subject_code="CS401", academic_year="2024-25", term="even",
        file_url="https://cdn.test/n.pdf", delete_token="tok", file_name="n.pdf",
        file_type="application/pdf", uploaded_at="2024-05-01T00:00:00Z",
    )
    assert record["teacherId"] == record["uploadedBy"] == "t-1"
    assert record["downloads"] == 0

    resource = normalize_resource("r9", record)
    assert resource.subject_code == "CS401"
    assert resource.delete_token == "tok"
    assert resource.semester == 4
