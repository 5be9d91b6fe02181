"""Target fields accepted by each import type.

Drives validation (required flags, value types, enum domains), the column
mapping UI labels and CSV template generation.
"""

from collections.abc import Mapping
from types import MappingProxyType

from app.models.import_job import ImportType
from app.schemas.import_job import ImportField
from app.services.data_import.normalizers import GUARDIAN_RELATIONSHIPS

# Shared student reference columns for the dependent import types
_STUDENT_REFERENCE = (
    ImportField(
        key="student_first_name",
        label="Student First Name",
        required=True,
        description="First name of the student",
        example="Emma",
    ),
    ImportField(
        key="student_last_name",
        label="Student Last Name",
        required=True,
        description="Last name of the student",
        example="Thompson",
    ),
)

STUDENT_FIELDS = (
    ImportField(
        key="first_name",
        label="First Name",
        required=True,
        description="Student's legal first name",
        example="Emma",
    ),
    ImportField(
        key="last_name",
        label="Last Name",
        required=True,
        description="Student's legal last name",
        example="Thompson",
    ),
    ImportField(
        key="preferred_name",
        label="Preferred Name",
        description="Name the student goes by (if different from first name)",
        example="Emmy",
    ),
    ImportField(
        key="dob",
        label="Date of Birth",
        description="Accepted formats: DD/MM/YYYY, YYYY-MM-DD, MM/DD/YYYY",
        example="15/03/2019",
        type="date",
    ),
    ImportField(
        key="gender",
        label="Gender",
        description="Male, Female, Non-binary, or Other",
        example="Female",
        type="enum",
        enum_values=("male", "female", "non-binary", "other"),
    ),
    ImportField(
        key="enrollment_status",
        label="Enrollment Status",
        description=(
            "Current status. Defaults to 'active' if blank. "
            "Options: inquiry, applicant, active, withdrawn, graduated"
        ),
        example="active",
        type="enum",
        enum_values=("inquiry", "applicant", "active", "withdrawn", "graduated"),
    ),
    ImportField(
        key="class_name",
        label="Class / Room Name",
        description=(
            "Name of the class/room the student belongs to. "
            "Must match an existing class or will be created."
        ),
        example="Wattle Room",
    ),
    ImportField(
        key="notes",
        label="Notes",
        description="Any additional notes about the student",
        example="Loves dinosaurs. Transitioning from nap to rest time.",
    ),
)

GUARDIAN_FIELDS = (
    ImportField(
        key="student_first_name",
        label="Student First Name",
        required=True,
        description="First name of the student this guardian is linked to",
        example="Emma",
    ),
    ImportField(
        key="student_last_name",
        label="Student Last Name",
        required=True,
        description="Last name of the student this guardian is linked to",
        example="Thompson",
    ),
    ImportField(
        key="guardian_first_name",
        label="Guardian First Name",
        required=True,
        description="Guardian's first name",
        example="Sarah",
    ),
    ImportField(
        key="guardian_last_name",
        label="Guardian Last Name",
        required=True,
        description="Guardian's last name",
        example="Thompson",
    ),
    ImportField(
        key="guardian_email",
        label="Guardian Email",
        required=True,
        description="Email address. Used to create their account and link as parent.",
        example="sarah.t@email.com",
        type="email",
    ),
    ImportField(
        key="relationship",
        label="Relationship",
        required=True,
        description="Relationship to student: mother, father, grandparent, other",
        example="mother",
        type="enum",
        enum_values=GUARDIAN_RELATIONSHIPS,
    ),
    ImportField(
        key="phone",
        label="Phone Number",
        description="Contact phone number",
        example="0412 345 678",
        type="phone",
    ),
    ImportField(
        key="is_primary",
        label="Primary Contact",
        description="Is this the primary guardian? yes/no/true/false",
        example="yes",
        type="boolean",
    ),
    ImportField(
        key="is_emergency_contact",
        label="Emergency Contact",
        description="Is this person an emergency contact? yes/no/true/false",
        example="yes",
        type="boolean",
    ),
    ImportField(
        key="pickup_authorized",
        label="Pickup Authorized",
        description="Authorized for pickup? Defaults to yes.",
        example="yes",
        type="boolean",
    ),
)

EMERGENCY_CONTACT_FIELDS = (
    *_STUDENT_REFERENCE,
    ImportField(
        key="contact_name",
        label="Contact Name",
        required=True,
        description="Full name of the emergency contact",
        example="Margaret Thompson",
    ),
    ImportField(
        key="relationship",
        label="Relationship",
        required=True,
        description="Relationship to the student",
        example="grandmother",
    ),
    ImportField(
        key="phone_primary",
        label="Primary Phone",
        required=True,
        description="Main contact phone number",
        example="0412 345 678",
        type="phone",
    ),
    ImportField(
        key="phone_secondary",
        label="Secondary Phone",
        description="Backup phone number",
        example="02 9876 5432",
        type="phone",
    ),
    ImportField(
        key="email",
        label="Email",
        description="Email address",
        example="margaret@email.com",
        type="email",
    ),
    ImportField(
        key="priority_order",
        label="Priority Order",
        description="Call order priority. 1 = call first. Defaults to 1.",
        example="1",
    ),
    ImportField(
        key="notes",
        label="Notes",
        description="Additional notes",
        example="Available after 3pm only",
    ),
)

MEDICAL_CONDITION_FIELDS = (
    *_STUDENT_REFERENCE,
    ImportField(
        key="condition_type",
        label="Condition Type",
        required=True,
        description="Type: allergy, asthma, epilepsy, diabetes, other",
        example="allergy",
        type="enum",
        enum_values=("allergy", "asthma", "epilepsy", "diabetes", "other"),
    ),
    ImportField(
        key="condition_name",
        label="Condition Name",
        required=True,
        description="Specific condition name",
        example="Peanut allergy",
    ),
    ImportField(
        key="severity",
        label="Severity",
        required=True,
        description="Severity level: mild, moderate, severe, life_threatening",
        example="severe",
        type="enum",
        enum_values=("mild", "moderate", "severe", "life_threatening"),
    ),
    ImportField(
        key="description",
        label="Description",
        description="Additional details about the condition",
        example="Anaphylactic reaction to all tree nuts",
    ),
    ImportField(
        key="action_plan",
        label="Action Plan",
        description="Written instructions for staff in an emergency",
        example="Administer EpiPen immediately, call 000",
    ),
    ImportField(
        key="requires_medication",
        label="Requires Medication",
        description="Does this condition require medication on-site? yes/no",
        example="yes",
        type="boolean",
    ),
    ImportField(
        key="medication_name",
        label="Medication Name",
        description="Name of medication if required",
        example="EpiPen",
    ),
    ImportField(
        key="medication_location",
        label="Medication Location",
        description="Where is the medication stored?",
        example="Office first aid kit",
    ),
)

STAFF_FIELDS = (
    ImportField(
        key="first_name",
        label="First Name",
        required=True,
        description="Staff member's first name",
        example="Maria",
    ),
    ImportField(
        key="last_name",
        label="Last Name",
        required=True,
        description="Staff member's last name",
        example="Montessori",
    ),
    ImportField(
        key="email",
        label="Email",
        required=True,
        description="Email address. An invitation will be sent to this address.",
        example="maria@school.edu.au",
        type="email",
    ),
    ImportField(
        key="role",
        label="Role",
        required=True,
        description="Their role at the school. Must match an existing role name.",
        example="Guide",
    ),
)

ATTENDANCE_FIELDS = (
    *_STUDENT_REFERENCE,
    ImportField(
        key="date",
        label="Date",
        required=True,
        description="Attendance date. Formats: DD/MM/YYYY, YYYY-MM-DD, MM/DD/YYYY",
        example="15/03/2024",
        type="date",
    ),
    ImportField(
        key="status",
        label="Status",
        required=True,
        description="Attendance status: present, absent, late, excused, half_day",
        example="present",
        type="enum",
        enum_values=("present", "absent", "late", "excused", "half_day"),
    ),
    ImportField(
        key="class_name",
        label="Class / Room",
        description="Name of the class/room. Optional - links attendance to a class.",
        example="Wattle Room",
    ),
    ImportField(
        key="check_in_time",
        label="Check-in Time",
        description="Time the student checked in. Format: HH:MM or HH:MM AM/PM",
        example="8:30",
    ),
    ImportField(
        key="check_out_time",
        label="Check-out Time",
        description="Time the student checked out. Format: HH:MM or HH:MM AM/PM",
        example="15:30",
    ),
    ImportField(
        key="notes",
        label="Notes",
        description="Any notes about this attendance record",
        example="Parent called to report illness",
    ),
)

IMPORT_FIELD_REGISTRY: Mapping[ImportType, tuple[ImportField, ...]] = MappingProxyType({
    ImportType.STUDENTS: STUDENT_FIELDS,
    ImportType.GUARDIANS: GUARDIAN_FIELDS,
    ImportType.EMERGENCY_CONTACTS: EMERGENCY_CONTACT_FIELDS,
    ImportType.MEDICAL_CONDITIONS: MEDICAL_CONDITION_FIELDS,
    ImportType.STAFF: STAFF_FIELDS,
    ImportType.ATTENDANCE: ATTENDANCE_FIELDS,
})


def get_fields(import_type: ImportType | str) -> tuple[ImportField, ...]:
    """Get the ordered target fields for an import type."""
    return IMPORT_FIELD_REGISTRY[ImportType(import_type)]
