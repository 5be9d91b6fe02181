from datetime import date
from uuid import uuid4

from app.models import ImportType
from app.schemas.import_job import ParsedCSV
from app.services.data_import.existing_data import ExistingData
from app.services.data_import.field_registry import get_fields
from app.services.data_import.strategies import get_strategy
from app.services.data_import.validator import coerce_fields, project_row, validate_import

TODAY = date(2024, 6, 1)


def _parsed(headers, *rows):
    return ParsedCSV(
        headers=headers,
        rows=[dict(zip(headers, row)) for row in rows],
        raw_row_count=len(rows),
    )


def _identity(headers, **overrides):
    mapping = {header: header for header in headers}
    mapping.update(overrides)
    return mapping


def _messages(row):
    return [error.message for error in row.errors]


def _warnings(row):
    return [warning.message for warning in row.warnings]


def test_project_row_drops_unmapped_columns():
    row = {"First": "Emma", "Last": "Thompson", "Shoe Size": "32"}

    assert project_row(row, {"First": "first_name", "Last": "last_name", "Shoe Size": None}) == {
        "first_name": "Emma",
        "last_name": "Thompson",
    }


def test_valid_student_rows_are_normalized():
    headers = ["first_name", "last_name", "dob", "gender", "enrollment_status"]
    parsed = _parsed(headers, ("Emma", "Thompson", "15/03/2019", "F", "Enrolled"))

    result = validate_import(ImportType.STUDENTS, parsed, _identity(headers), ExistingData(), today=TODAY)

    assert result.is_valid
    row = result.rows[0]
    assert row.row_number == 1
    assert row.mapped_data == {
        "first_name": "Emma",
        "last_name": "Thompson",
        "dob": "2019-03-15",
        "gender": "female",
        "enrollment_status": "active",
    }
    assert row.raw_data["dob"] == "15/03/2019"


def test_required_and_type_errors_are_all_reported():
    headers = ["first_name", "last_name", "dob", "gender"]
    parsed = _parsed(headers, ("  ", "Thompson", "31/02/2019", "robot"))

    result = validate_import(ImportType.STUDENTS, parsed, _identity(headers), ExistingData(), today=TODAY)

    row = result.rows[0]
    assert not row.is_valid
    assert not result.is_valid
    assert _messages(row) == [
        "First Name is required",
        'Invalid date format "31/02/2019". Use DD/MM/YYYY, YYYY-MM-DD, or MM/DD/YYYY',
        'Invalid value "robot". Must be one of: male, female, non-binary, other',
    ]
    assert result.summary.errors_by_field == {"first_name": 1, "dob": 1, "gender": 1}


def test_unmapped_required_field_is_an_error():
    headers = ["first_name"]
    parsed = _parsed(headers, ("Emma",))

    result = validate_import(ImportType.STUDENTS, parsed, _identity(headers), ExistingData(), today=TODAY)

    assert _messages(result.rows[0]) == ["Last Name is required"]


def test_summary_counts():
    headers = ["first_name", "last_name", "class_name"]
    parsed = _parsed(
        headers,
        ("Emma", "Thompson", ""),
        ("Liam", "Nguyen", "Banksia Room"),
        ("", "Nguyen", ""),
        ("Olivia", "Smith", ""),
    )
    existing = ExistingData(student_names=frozenset({"olivia|smith"}))

    result = validate_import(ImportType.STUDENTS, parsed, _identity(headers), existing, today=TODAY)

    summary = result.summary
    assert summary.total_rows == 4
    assert summary.valid_rows == 3
    assert summary.error_rows == 1
    assert summary.warning_rows == 2
    assert summary.duplicate_rows == 1
    assert summary.valid_rows + summary.error_rows == summary.total_rows
    assert [row.row_number for row in result.rows] == [1, 2, 3, 4]


def test_student_duplicates_in_file_and_in_system():
    headers = ["first_name", "last_name"]
    parsed = _parsed(headers, ("Emma", "Thompson"), ("EMMA", "thompson"), ("Olivia", "Smith"))
    existing = ExistingData(student_names=frozenset({"olivia|smith"}))

    result = validate_import(ImportType.STUDENTS, parsed, _identity(headers), existing, today=TODAY)

    first, second, third = result.rows
    assert not first.warnings
    assert _warnings(second) == [
        'Duplicate student "EMMA thompson" appears multiple times in this file'
    ]
    assert not second.is_duplicate
    assert third.is_duplicate
    assert third.is_valid
    assert _warnings(third) == ['Student "Olivia Smith" already exists in the system']


def test_unknown_student_class_is_a_warning():
    headers = ["first_name", "last_name", "class_name"]
    parsed = _parsed(headers, ("Emma", "Thompson", "Gum Nut Room"), ("Liam", "Nguyen", "wattle room"))
    existing = ExistingData(class_names={"wattle room": uuid4()})

    result = validate_import(ImportType.STUDENTS, parsed, _identity(headers), existing, today=TODAY)

    assert _warnings(result.rows[0]) == ['Class "Gum Nut Room" doesn\'t exist and will be created']
    assert not result.rows[1].warnings
    assert result.is_valid


def test_guardian_requires_existing_student():
    headers = [
        "student_first_name", "student_last_name", "guardian_first_name",
        "guardian_last_name", "guardian_email", "relationship",
    ]
    parsed = _parsed(
        headers,
        ("Emma", "Thompson", "Sarah", "Thompson", "Sarah@Example.com", "Mum"),
        ("Ghost", "Child", "Sam", "Child", "sam@example.com", "dad"),
    )
    existing = ExistingData(
        student_names=frozenset({"emma|thompson"}),
        guardian_emails=frozenset({"sarah@example.com"}),
    )

    result = validate_import(ImportType.GUARDIANS, parsed, _identity(headers), existing, today=TODAY)

    known, ghost = result.rows
    assert known.is_valid
    assert known.mapped_data["guardian_email"] == "sarah@example.com"
    assert known.mapped_data["relationship"] == "mother"
    assert _warnings(known) == [
        'Email "sarah@example.com" already exists. Will link existing account to this student.'
    ]
    assert _messages(ghost) == ['Student "Ghost Child" not found. Import students first.']
    assert ghost.errors[0].field == "student_first_name"


def test_guardian_boolean_and_email_errors():
    headers = [
        "student_first_name", "student_last_name", "guardian_first_name",
        "guardian_last_name", "guardian_email", "relationship", "is_primary",
    ]
    parsed = _parsed(headers, ("Emma", "Thompson", "Sarah", "Thompson", "not-an-email", "mother", "perhaps"))
    existing = ExistingData(student_names=frozenset({"emma|thompson"}))

    result = validate_import(ImportType.GUARDIANS, parsed, _identity(headers), existing, today=TODAY)

    assert _messages(result.rows[0]) == [
        'Invalid email address "not-an-email"',
        'Invalid boolean value "perhaps". Use yes/no, true/false, or 1/0',
    ]


def test_staff_role_must_exist():
    headers = ["first_name", "last_name", "email", "role"]
    parsed = _parsed(
        headers,
        ("Maria", "Garcia", "maria@school.edu.au", "guide"),
        ("Tom", "Lee", "tom@school.edu.au", "Janitor"),
    )
    existing = ExistingData(role_names={"guide": uuid4(), "admin": uuid4()})

    result = validate_import(ImportType.STAFF, parsed, _identity(headers), existing, today=TODAY)

    assert result.rows[0].is_valid
    assert _messages(result.rows[1]) == [
        'Role "Janitor" doesn\'t exist. Available roles: guide, admin'
    ]


def test_attendance_rows():
    headers = [
        "student_first_name", "student_last_name", "date", "status",
        "class_name", "check_in_time",
    ]
    parsed = _parsed(
        headers,
        ("Emma", "Thompson", "15/03/2024", "P", "Wattle Room", "8:30"),
        ("Emma", "Thompson", "2024-03-15", "late", "", "whenever"),
        ("Emma", "Thompson", "01/01/2030", "✗", "Nowhere", ""),
        ("Emma", "Thompson", "16/03/2024", "maybe", "", ""),
        ("Emma", "Thompson", "10/03/2024", "A", "", ""),
    )
    existing = ExistingData(
        student_names=frozenset({"emma|thompson"}),
        class_names={"wattle room": uuid4()},
        attendance_keys=frozenset({"emma|thompson|2024-03-10"}),
    )

    result = validate_import(ImportType.ATTENDANCE, parsed, _identity(headers), existing, today=TODAY)
    first, second, future, bad_status, existing_row = result.rows

    assert first.is_valid and not first.warnings
    assert first.mapped_data["date"] == "2024-03-15"
    assert first.mapped_data["status"] == "present"

    assert second.is_valid
    assert _warnings(second) == [
        'Invalid time format "whenever". Use HH:MM or HH:MM AM/PM. Will be skipped.',
        "Duplicate attendance record for this student on 2024-03-15. Later row will overwrite.",
    ]

    assert future.mapped_data["status"] == "absent"
    assert _warnings(future) == [
        "Date 2030-01-01 is in the future - intentional?",
        'Class "Nowhere" doesn\'t exist. Attendance will be recorded without a class link.',
    ]

    assert _messages(bad_status) == [
        'Invalid attendance status "maybe". Must be one of: present, absent, late, excused, half_day'
    ]

    assert existing_row.is_duplicate
    assert existing_row.is_valid
    assert _warnings(existing_row) == [
        "Attendance record already exists for this student on 2024-03-10. Will be overwritten."
    ]


def test_unparseable_attendance_date_is_not_flagged_as_future():
    headers = ["student_first_name", "student_last_name", "date", "status"]
    parsed = _parsed(headers, ("Emma", "Thompson", "31/02/2024", "present"))
    existing = ExistingData(student_names=frozenset({"emma|thompson"}))

    result = validate_import(ImportType.ATTENDANCE, parsed, _identity(headers), existing, today=TODAY)
    (row,) = result.rows

    assert _messages(row) == [
        'Invalid date format "31/02/2024". Use DD/MM/YYYY, YYYY-MM-DD, or MM/DD/YYYY'
    ]
    assert not any("in the future" in warning for warning in _warnings(row))


def test_coerce_fields_is_idempotent():
    strategy = get_strategy(ImportType.GUARDIANS)
    fields = get_fields(ImportType.GUARDIANS)
    data = {
        "guardian_email": " Sarah@Example.COM ",
        "relationship": "Mum",
        "phone": "(02) 9555 1234",
        "is_primary": "Yes",
        "pickup_authorized": "0",
    }

    assert coerce_fields(strategy, fields, data, 1) == []
    once = dict(data)
    assert coerce_fields(strategy, fields, data, 1) == []
    assert data == once
    assert data == {
        "guardian_email": "sarah@example.com",
        "relationship": "mother",
        "phone": "0295551234",
        "is_primary": "true",
        "pickup_authorized": "false",
    }


def test_validation_is_deterministic():
    headers = ["first_name", "last_name", "dob"]
    parsed = _parsed(headers, ("Emma", "Thompson", "3/4/2019"), ("Emma", "Thompson", "bad"))

    first = validate_import(ImportType.STUDENTS, parsed, _identity(headers), ExistingData(), today=TODAY)
    second = validate_import(ImportType.STUDENTS, parsed, _identity(headers), ExistingData(), today=TODAY)

    assert first == second
