from app.models import ImportType
from app.services.data_import.column_mapper import (
    ALIAS_MATCH_CONFIDENCE,
    KEY_MATCH_CONFIDENCE,
    LABEL_MATCH_CONFIDENCE,
    mapping_from_suggestions,
    suggest_column_mapping,
)
from app.services.data_import.field_registry import get_fields


def _by_header(suggestions):
    return {s.csv_header: (s.target_field, s.confidence) for s in suggestions}


def test_exact_key_alias_and_label_matches():
    suggestions = suggest_column_mapping(
        ["first_name", "Surname", "Class / Room Name"],
        get_fields(ImportType.STUDENTS),
    )

    assert _by_header(suggestions) == {
        "first_name": ("first_name", KEY_MATCH_CONFIDENCE),
        "Surname": ("last_name", ALIAS_MATCH_CONFIDENCE),
        "Class / Room Name": ("class_name", LABEL_MATCH_CONFIDENCE),
    }


def test_partial_match_scores_by_length_ratio():
    # "gender (m/f)" contains "gender": 6 / 12 * 0.85
    suggestions = suggest_column_mapping(["Gender (M/F)"], get_fields(ImportType.STUDENTS))

    assert len(suggestions) == 1
    assert suggestions[0].target_field == "gender"
    assert 0.4 <= suggestions[0].confidence < ALIAS_MATCH_CONFIDENCE


def test_each_field_is_claimed_once_in_file_order():
    suggestions = suggest_column_mapping(
        ["First Name", "Given Name"],
        get_fields(ImportType.STUDENTS),
    )

    assert _by_header(suggestions) == {"First Name": ("first_name", ALIAS_MATCH_CONFIDENCE)}


def test_target_fields_are_unique_and_confidences_bounded():
    headers = [
        "Child First Name", "Child Last Name", "Parent Email", "Email", "Relationship",
        "Mobile", "Phone", "Primary", "Emergency", "Pickup Authorized", "Random Column",
    ]

    suggestions = suggest_column_mapping(headers, get_fields(ImportType.GUARDIANS))
    targets = [s.target_field for s in suggestions]

    assert len(targets) == len(set(targets))
    assert all(0.4 <= s.confidence <= 1.0 for s in suggestions)
    assert "Random Column" not in {s.csv_header for s in suggestions}


def test_suggestions_are_sorted_by_confidence():
    suggestions = suggest_column_mapping(
        ["Class / Room Name", "Surname", "first_name"],
        get_fields(ImportType.STUDENTS),
    )

    assert [s.confidence for s in suggestions] == sorted(
        (s.confidence for s in suggestions), reverse=True
    )
    assert suggestions[0].csv_header == "first_name"


def test_min_confidence_drops_weak_matches():
    headers = ["Gender (M/F)"]
    fields = get_fields(ImportType.STUDENTS)

    assert suggest_column_mapping(headers, fields, min_confidence=0.9) == []


def test_custom_alias_table():
    suggestions = suggest_column_mapping(
        ["Vorname"],
        get_fields(ImportType.STUDENTS),
        aliases={"first_name": ("vorname",)},
    )

    assert _by_header(suggestions) == {"Vorname": ("first_name", ALIAS_MATCH_CONFIDENCE)}


def test_attendance_headers_from_other_platforms():
    headers = ["Student First Name", "Student Last Name", "Attendance Date", "Mark", "Time In"]

    mapping = mapping_from_suggestions(
        suggest_column_mapping(headers, get_fields(ImportType.ATTENDANCE))
    )

    assert mapping == {
        "Student First Name": "student_first_name",
        "Student Last Name": "student_last_name",
        "Attendance Date": "date",
        "Mark": "status",
        "Time In": "check_in_time",
    }


def test_mapping_from_suggestions_respects_threshold():
    suggestions = suggest_column_mapping(
        ["First Name", "Gender (M/F)"],
        get_fields(ImportType.STUDENTS),
    )

    assert mapping_from_suggestions(suggestions, min_confidence=0.7) == {"First Name": "first_name"}
