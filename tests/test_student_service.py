import uuid

import pytest

from admissions.errors import ErrorKind
from admissions.models import SecondaryStream, StudentStatus, UserRole, UserStatus
from admissions.schemas.student import StudentRead
from admissions.services.student import StudentService
from tests.conftest import actor_for, parent_info, student_payload, years_ago


@pytest.fixture()
def student_service(db_session, clock):
    return StudentService(db_session, clock)


class TestCreateStudent:
    def test_parent_creates_prospective_student(self, student_service, parent, parent_user):
        result = student_service.create(
            parent, student_payload(preferred_stream="science")
        )

        assert result.ok, result.error
        student = result.value
        assert student.parent_user_id == parent_user.id
        assert student.status == StudentStatus.prospective
        assert student.gender == "Female"
        assert student.nationality == "Nigerian"
        assert student.selected_stream == SecondaryStream.science
        assert student.address.state == "Lagos"
        assert student.father_info.full_name == "Musa Bello"
        assert student.mother_info.relationship == "Mother"
        assert student.guardian_info is None

    def test_guardian_is_optional_but_kept(self, student_service, parent):
        result = student_service.create(
            parent,
            student_payload(guardian_info=parent_info("Aunty Zainab", "Aunt")),
        )
        assert result.ok, result.error
        assert result.value.guardian_info.full_name == "Aunty Zainab"

    def test_only_parents_create_students(self, student_service, admin, teacher):
        assert student_service.create(admin, student_payload()).kind == ErrorKind.unauthorized
        assert (
            student_service.create(teacher, student_payload()).kind
            == ErrorKind.unauthorized
        )

    def test_parent_account_must_be_active(self, student_service, make_user):
        pending = make_user(UserRole.parent, status=UserStatus.pending_verification)
        result = student_service.create(actor_for(pending), student_payload())
        assert result.kind == ErrorKind.invalid_state
        assert result.error == "Parent account is not active"

    def test_under_ten_is_rejected(self, student_service, parent):
        result = student_service.create(parent, student_payload(years_ago(9)))
        assert result.kind == ErrorKind.validation_failed
        assert result.error == "Student must be at least 10 years old"

    def test_over_twenty_five_is_rejected(self, student_service, parent):
        result = student_service.create(parent, student_payload(years_ago(30)))
        assert result.kind == ErrorKind.validation_failed
        assert result.error == "Student cannot be older than 25 years"
        assert student_service.create(parent, student_payload(years_ago(25))).ok

    def test_over_eighteen_is_allowed_with_warning(self, student_service, parent, caplog):
        result = student_service.create(parent, student_payload(years_ago(19)))
        assert result.ok, result.error
        assert any("above the usual secondary range" in r.getMessage() for r in caplog.records)

    def test_duplicate_email(self, student_service, parent):
        first = student_service.create(parent, student_payload(email="amina@example.com"))
        second = student_service.create(parent, student_payload(email="Amina@Example.com"))
        assert first.ok, first.error
        assert second.kind == ErrorKind.conflict
        assert second.error == "A student with this email already exists"

    def test_duplicate_phone(self, student_service, parent):
        student_service.create(parent, student_payload(phone_number="08051234567"))
        result = student_service.create(parent, student_payload(phone_number="08051234567"))
        assert result.kind == ErrorKind.conflict
        assert result.error == "A student with this phone number already exists"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"gender": "other"},
            {"phone_number": "555-1234"},
            {"father_info": None},
            {"address": {"street": "", "city": "Ikeja", "lga": "Ikeja", "state": "Lagos"}},
        ],
    )
    def test_invalid_payload(self, student_service, parent, overrides):
        result = student_service.create(parent, student_payload(**overrides))
        assert result.kind == ErrorKind.validation_failed


class TestUpdateStudent:
    def test_owner_updates_fields_and_value_objects(self, student_service, parent, student):
        result = student_service.update(
            parent,
            student.id,
            {
                "previous_school": "Kings College",
                "preferred_stream": "arts",
                "address": {
                    "street": "1 Marina",
                    "city": "Lagos Island",
                    "lga": "Lagos Island",
                    "state": "Lagos",
                },
                "father_info": parent_info("Emeka Eze", "Father"),
            },
        )

        assert result.ok, result.error
        updated = result.value
        assert updated.previous_school == "Kings College"
        assert updated.selected_stream == SecondaryStream.arts
        assert updated.address.street == "1 Marina"
        assert updated.address.postal_code is None
        assert updated.father_info.full_name == "Emeka Eze"
        assert updated.mother_info.full_name == "Ada Eze"
        assert updated.first_name == "Chidi"

    def test_guardian_can_be_cleared(self, student_service, parent, student):
        student_service.update(
            parent, student.id, {"guardian_info": parent_info("Uncle Ike", "Uncle")}
        )
        result = student_service.update(parent, student.id, {"guardian_info": None})
        assert result.ok, result.error
        assert result.value.guardian_info is None

    def test_other_parent_cannot_update(self, student_service, other_parent_actor, student):
        result = student_service.update(other_parent_actor, student.id, {"religion": "x"})
        assert result.kind == ErrorKind.unauthorized

    def test_admin_cannot_update(self, student_service, admin, student):
        result = student_service.update(admin, student.id, {"religion": "x"})
        assert result.kind == ErrorKind.unauthorized


class TestStudentQueries:
    def test_get_for_owner_staff_and_stranger(
        self, student_service, parent, admin, teacher, other_parent_actor, student
    ):
        own = student_service.get(parent, student.id)
        assert own.ok, own.error
        assert isinstance(own.value, StudentRead)
        assert own.value.id == student.id
        assert own.value.address.state == student.address.state
        assert student_service.get(admin, student.id).ok
        assert student_service.get(teacher, student.id).ok
        assert student_service.get(other_parent_actor, student.id).kind == (
            ErrorKind.unauthorized
        )

    def test_missing_student(self, student_service, admin, parent):
        assert student_service.get(admin, uuid.uuid4()).kind == ErrorKind.not_found
        assert student_service.get(parent, uuid.uuid4()).kind == ErrorKind.unauthorized

    def test_list_for_parent(
        self, student_service, parent, other_parent_actor, parent_user, make_student
    ):
        first = make_student(parent_user)
        second = make_student(parent_user)
        own = student_service.list_for_parent(parent).value
        assert {s.id for s in own} == {first.id, second.id}
        assert all(isinstance(s, StudentRead) for s in own)
        assert student_service.list_for_parent(other_parent_actor).value == []

    def test_list_all_requires_unconditional_read(
        self, student_service, admin, parent, parent_user, make_student
    ):
        for _ in range(3):
            make_student(parent_user)
        page = student_service.list_all(admin, page=1, page_size=2).value
        assert page["total"] == 3
        assert page["pages"] == 2
        assert len(page["items"]) == 2
        assert all(isinstance(s, StudentRead) for s in page["items"])
        assert student_service.list_all(parent).kind == ErrorKind.unauthorized
