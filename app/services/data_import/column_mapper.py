"""Suggest CSV header -> target field mappings.

Headers exported by other school platforms rarely match our field keys, so
each field carries a list of known aliases. Matching is greedy: headers are
considered in file order and a field claimed by an earlier header is not
offered to later ones.
"""

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from app.schemas.import_job import ImportField, MappingSuggestion

KEY_MATCH_CONFIDENCE = 1.0
ALIAS_MATCH_CONFIDENCE = 0.95
LABEL_MATCH_CONFIDENCE = 0.9
PARTIAL_MATCH_WEIGHT = 0.85
DEFAULT_MIN_CONFIDENCE = 0.4

# Aliases per field key, shared by every import type that uses the key
FIELD_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    # Students
    "first_name": (
        "first name", "first_name", "firstname", "given name", "given_name",
        "child first name", "child_first_name", "student first name", "forename", "fname",
    ),
    "last_name": (
        "last name", "last_name", "lastname", "surname", "family name", "family_name",
        "child last name", "child_last_name", "student last name", "lname",
    ),
    "preferred_name": (
        "preferred name", "preferred_name", "nickname", "known as", "goes by", "display name",
    ),
    "dob": (
        "date of birth", "date_of_birth", "dob", "birth date", "birthdate", "birthday",
        "birth_date", "d.o.b", "d.o.b.",
    ),
    "gender": ("gender", "sex", "child gender"),
    "enrollment_status": (
        "enrollment status", "enrollment_status", "enrolment status", "enrolment_status",
        "status", "student status",
    ),
    "class_name": (
        "class", "class name", "class_name", "classroom", "room", "room name", "room_name",
        "environment", "level", "group",
    ),
    "notes": ("notes", "comments", "additional info", "additional_info", "memo"),
    # Guardians
    "student_first_name": (
        "student first name", "child first name", "child_first_name", "student_first_name",
    ),
    "student_last_name": (
        "student last name", "child last name", "child_last_name", "student_last_name",
    ),
    "guardian_first_name": (
        "parent first name", "guardian first name", "parent_first_name", "guardian_first_name",
        "carer first name", "parent firstname", "family member first name",
    ),
    "guardian_last_name": (
        "parent last name", "guardian last name", "parent_last_name", "guardian_last_name",
        "carer last name", "parent lastname", "family member last name",
    ),
    "guardian_email": (
        "parent email", "guardian email", "parent_email", "guardian_email", "carer email",
        "family email", "email", "email address",
    ),
    "relationship": (
        "relationship", "relation", "relationship to child", "relationship_to_child",
        "relation to student", "type", "contact type",
    ),
    "phone": (
        "phone", "phone number", "phone_number", "mobile", "mobile number", "mobile_number",
        "cell", "cell phone", "telephone", "contact number",
    ),
    "is_primary": (
        "primary", "is primary", "is_primary", "primary contact", "primary_contact",
        "main contact",
    ),
    "is_emergency_contact": (
        "emergency contact", "is emergency contact", "is_emergency_contact", "emergency",
    ),
    "pickup_authorized": (
        "pickup authorized", "pickup_authorized", "authorised pickup", "authorized pickup",
        "can pickup", "can_pickup",
    ),
    # Emergency contacts
    "contact_name": (
        "contact name", "contact_name", "name", "full name", "full_name",
        "emergency contact name",
    ),
    "phone_primary": (
        "primary phone", "phone_primary", "phone 1", "phone1", "main phone", "home phone",
        "phone", "mobile",
    ),
    "phone_secondary": (
        "secondary phone", "phone_secondary", "phone 2", "phone2", "work phone", "alt phone",
        "alternate phone",
    ),
    "email": ("email", "email address", "email_address", "e-mail"),
    "priority_order": (
        "priority", "priority order", "priority_order", "order", "call order", "call_order",
        "rank",
    ),
    # Medical conditions
    "condition_type": ("condition type", "condition_type", "type", "medical type", "category"),
    "condition_name": (
        "condition name", "condition_name", "condition", "allergy", "medical condition",
        "diagnosis",
    ),
    "severity": ("severity", "severity level", "severity_level", "risk level"),
    "description": ("description", "details", "info", "information"),
    "action_plan": (
        "action plan", "action_plan", "management plan", "emergency plan", "treatment plan",
        "plan",
    ),
    "requires_medication": (
        "requires medication", "requires_medication", "medication required",
        "needs medication", "medicated",
    ),
    "medication_name": (
        "medication name", "medication_name", "medication", "medicine", "drug",
    ),
    "medication_location": (
        "medication location", "medication_location", "storage location", "where stored",
        "location",
    ),
    # Staff
    "role": ("role", "job title", "job_title", "position", "title", "staff role", "staff_role"),
    # Attendance
    "date": ("date", "attendance date", "attendance_date", "day", "record date", "session date"),
    "status": (
        "status", "attendance status", "attendance_status", "attendance", "mark", "code",
        "attendance code", "attendance type",
    ),
    "check_in_time": (
        "check in", "check_in", "check-in", "checkin", "check in time", "check_in_time",
        "arrival", "arrival time", "sign in", "sign_in", "time in",
    ),
    "check_out_time": (
        "check out", "check_out", "check-out", "checkout", "check out time", "check_out_time",
        "departure", "departure time", "sign out", "sign_out", "time out",
    ),
})


def _partial_score(header: str, alias: str) -> float:
    """Length ratio of two strings when one contains the other, else 0."""
    if not header or not alias:
        return 0.0
    if header in alias or alias in header:
        return min(len(header), len(alias)) / max(len(header), len(alias)) * PARTIAL_MATCH_WEIGHT
    return 0.0


def _best_match(
    header: str,
    fields: Sequence[ImportField],
    claimed: set[str],
    aliases: Mapping[str, Sequence[str]],
) -> tuple[str, float] | None:
    best: tuple[str, float] | None = None

    for field in fields:
        if field.key in claimed:
            continue

        field_aliases = aliases.get(field.key, ())
        if header == field.key:
            return field.key, KEY_MATCH_CONFIDENCE
        if header in field_aliases:
            return field.key, ALIAS_MATCH_CONFIDENCE
        if header == field.label.lower():
            return field.key, LABEL_MATCH_CONFIDENCE

        for alias in field_aliases:
            score = _partial_score(header, alias)
            if score > 0 and (best is None or score > best[1]):
                best = (field.key, score)

    return best


def suggest_column_mapping(
    headers: Sequence[str],
    fields: Sequence[ImportField],
    *,
    aliases: Mapping[str, Sequence[str]] = FIELD_ALIASES,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> list[MappingSuggestion]:
    """Suggest a target field for each CSV header.

    Args:
        headers: CSV headers in file order.
        fields: Target fields of the import type, in registry order.
        aliases: Known header spellings per field key.
        min_confidence: Suggestions scoring below this are dropped.

    Returns:
        Suggestions sorted by confidence, highest first.
    """
    suggestions: list[MappingSuggestion] = []
    claimed: set[str] = set()

    for csv_header in headers:
        match = _best_match(csv_header.strip().lower(), fields, claimed, aliases)
        if match is None:
            continue
        field_key, confidence = match
        if confidence < min_confidence:
            continue
        suggestions.append(
            MappingSuggestion(
                csv_header=csv_header,
                target_field=field_key,
                confidence=round(confidence, 4),
            )
        )
        claimed.add(field_key)

    # Stable sort keeps file order among equal confidences
    suggestions.sort(key=lambda suggestion: suggestion.confidence, reverse=True)
    return suggestions


def mapping_from_suggestions(
    suggestions: Sequence[MappingSuggestion],
    *,
    min_confidence: float = 0.0,
) -> dict[str, str]:
    """Turn suggestions into a column mapping, keeping the confident ones."""
    return {
        suggestion.csv_header: suggestion.target_field
        for suggestion in suggestions
        if suggestion.confidence >= min_confidence
    }
