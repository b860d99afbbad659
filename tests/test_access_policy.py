from campus_resources.schemas.resource_schema import Resource
from campus_resources.schemas.user_schema import Actor
from campus_resources.services.catalog.access_policy import can_manage_users, can_mutate, can_upload
from tests.fakes import ADMIN, OTHER_TEACHER, STUDENT, TEACHER


def _resource(**kwargs):
    return Resource(id="r1", uploaded_by="t-1", **kwargs)


def test_teacher_mutates_only_own_resources():
    assert can_mutate(TEACHER, _resource()) is True
    assert can_mutate(OTHER_TEACHER, _resource()) is False


def test_admin_mutates_everything():
    assert can_mutate(ADMIN, _resource()) is True
    assert can_mutate(ADMIN, Resource(id="r2")) is True


def test_student_never_mutates():
    assert can_mutate(STUDENT, Resource(id="r1", uploaded_by=STUDENT.uid)) is False


def test_missing_actor_or_role():
    assert can_mutate(None, _resource()) is False
    assert can_mutate(Actor(uid="t-1"), _resource()) is False
    assert can_upload(None) is False
    assert can_upload(Actor(uid="x")) is False


def test_current_role_wins_over_snapshot_on_resource():
    demoted = Actor(uid="t-1", role="student")
    assert can_mutate(demoted, _resource(role="teacher")) is False

    promoted = Actor(uid="x-9", role="admin")
    assert can_mutate(promoted, _resource(role="student")) is True


def test_teacher_without_owner_field_cannot_mutate():
    assert can_mutate(TEACHER, Resource(id="r1", uploaded_by="")) is False


def test_can_upload():
    assert can_upload(TEACHER) is True
    assert can_upload(ADMIN) is True
    assert can_upload(STUDENT) is False


def test_can_manage_users_with_designated_email():
    assert can_manage_users(ADMIN) is True
    assert can_manage_users(ADMIN, "Admin@Campus.edu") is True
    assert can_manage_users(ADMIN, "root@campus.edu") is False
    assert can_manage_users(TEACHER) is False


def test_changing_owner_flips_teacher_rights():
    owned = _resource()
    reassigned = owned.model_copy(update={"uploaded_by": "someone-else"})
    assert can_mutate(TEACHER, owned) is True
    assert can_mutate(TEACHER, reassigned) is False
    assert can_mutate(OTHER_TEACHER, reassigned.model_copy(update={"uploaded_by": OTHER_TEACHER.uid})) is True
