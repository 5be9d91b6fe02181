from uuid import uuid4

from app.utils.security import create_access_token

STUDENTS_CSV = (
    "First Name,Surname,Date of Birth,Class / Room Name\n"
    "Emma,Thompson,15/03/2019,Wattle Room\n"
    "Liam,Nguyen,not a date,\n"
)


async def _upload(client, headers, content, import_type="students", filename="students.csv"):
    return await client.post(
        "/api/v1/imports/parse",
        headers=headers,
        files={"file": (filename, content, "text/csv")},
        data={"import_type": import_type},
    )


async def _validate(client, headers, parsed_csv, mapping, import_type="students"):
    return await client.post(
        "/api/v1/imports/validate",
        headers=headers,
        json={"import_type": import_type, "parsed_csv": parsed_csv, "column_mapping": mapping},
    )


async def _execute(client, headers, rows, mapping, file_name="students.csv", **extra):
    return await client.post(
        "/api/v1/imports/execute",
        headers=headers,
        json={
            "import_type": "students",
            "file_name": file_name,
            "column_mapping": mapping,
            "validated_rows": rows,
            **extra,
        },
    )


async def _full_import(client, headers, content=STUDENTS_CSV, file_name="students.csv"):
    parsed = (await _upload(client, headers, content)).json()["data"]
    mapping = {s["csv_header"]: s["target_field"] for s in parsed["suggestions"]}
    validation = (await _validate(client, headers, parsed["parsed_csv"], mapping)).json()["data"]
    response = await _execute(client, headers, validation["rows"], mapping, file_name=file_name)
    return response.json()["data"]


async def test_health_needs_no_token(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_imports_require_authentication(client):
    response = await client.get("/api/v1/imports/fields")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


async def test_imports_require_school_admin(client, tenant):
    token = create_access_token(tenant.admin_id, tenant.tenant_id, role="TEACHER")

    response = await client.get(
        "/api/v1/imports/fields",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


async def test_fields_for_one_or_all_types(client, admin_headers):
    response = await client.get("/api/v1/imports/fields?import_type=staff", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert list(data) == ["staff"]
    assert [field["key"] for field in data["staff"]][:4] == ["first_name", "last_name", "email", "role"]

    response = await client.get("/api/v1/imports/fields", headers=admin_headers)
    assert set(response.json()["data"]) == {
        "students", "guardians", "emergency_contacts", "medical_conditions", "staff", "attendance",
    }


async def test_parse_upload_suggests_mapping(client, admin_headers):
    response = await _upload(client, admin_headers, STUDENTS_CSV)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Found 2 rows."
    assert body["data"]["parsed_csv"]["headers"] == [
        "First Name", "Surname", "Date of Birth", "Class / Room Name",
    ]
    mapping = {s["csv_header"]: s["target_field"] for s in body["data"]["suggestions"]}
    assert mapping == {
        "First Name": "first_name",
        "Surname": "last_name",
        "Date of Birth": "dob",
        "Class / Room Name": "class_name",
    }


async def test_parse_rejects_unusable_files(client, admin_headers):
    response = await _upload(client, admin_headers, "")

    assert response.status_code == 400
    assert response.json() == {
        "status": "error",
        "message": "The file appears to be empty.",
        "code": "PARSE_ERROR",
    }

    response = await _upload(client, admin_headers, b"\xff\xfe\x00N\x00a")
    assert response.status_code == 400
    assert response.json()["message"] == "The file must be UTF-8 encoded text."


async def test_suggest_mapping(client, admin_headers):
    response = await client.post(
        "/api/v1/imports/suggest-mapping",
        headers=admin_headers,
        json={"import_type": "attendance", "headers": ["Student First Name", "Date", "Mark"]},
    )

    assert response.status_code == 200
    targets = {s["csv_header"]: s["target_field"] for s in response.json()["data"]}
    assert targets == {"Student First Name": "student_first_name", "Date": "date", "Mark": "status"}


async def test_validate_reports_row_errors(client, admin_headers):
    parsed = (await _upload(client, admin_headers, STUDENTS_CSV)).json()["data"]["parsed_csv"]
    mapping = {
        "First Name": "first_name",
        "Surname": "last_name",
        "Date of Birth": "dob",
        "Class / Room Name": "class_name",
    }

    response = await _validate(client, admin_headers, parsed, mapping)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "1 of 2 rows have errors."
    assert body["data"]["is_valid"] is False
    assert body["data"]["summary"]["errors_by_field"] == {"dob": 1}
    emma, liam = body["data"]["rows"]
    assert emma["mapped_data"]["dob"] == "2019-03-15"
    assert emma["is_valid"] is True
    assert liam["is_valid"] is False


async def test_execute_and_read_back_job(client, admin_headers, tenant):
    job = await _full_import(client, admin_headers)

    assert job["status"] == "completed_with_errors"
    assert job["created_by"] == str(tenant.admin_id)
    assert (job["imported_count"], job["skipped_count"], job["error_count"]) == (1, 0, 1)
    assert job["errors"][0]["row"] == 2

    response = await client.get(f"/api/v1/imports/{job['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["file_name"] == "students.csv"

    response = await client.get(f"/api/v1/imports/{job['id']}/records", headers=admin_headers)
    records = response.json()["data"]
    assert [r["status"] for r in records] == ["imported", "error"]
    assert records[0]["entity_type"] == "students"
    assert records[0]["raw_data"]["Date of Birth"] == "15/03/2019"

    response = await client.get(
        f"/api/v1/imports/{job['id']}/records?status=error", headers=admin_headers
    )
    assert [r["row_number"] for r in response.json()["data"]] == [2]


async def test_execute_rejects_bad_request_body(client, admin_headers):
    response = await _execute(client, admin_headers, [], {}, file_name="")

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_history_lists_newest_first(client, admin_headers):
    first = await _full_import(client, admin_headers, file_name="first.csv")
    second = await _full_import(client, admin_headers, file_name="second.csv")

    response = await client.get("/api/v1/imports", headers=admin_headers)

    body = response.json()
    assert [job["id"] for job in body["data"]] == [second["id"], first["id"]]
    assert body["pagination"] == {"limit": 20, "total_items": 2}

    response = await client.get("/api/v1/imports?limit=1", headers=admin_headers)
    assert [job["id"] for job in response.json()["data"]] == [second["id"]]


async def test_jobs_of_other_tenants_are_hidden(client, admin_headers, tenant, other_tenant):
    job = await _full_import(client, admin_headers)
    other_headers = {
        "Authorization": "Bearer "
        + create_access_token(uuid4(), other_tenant, role="SCHOOL_ADMIN")
    }

    response = await client.get(f"/api/v1/imports/{job['id']}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Import job not found"

    response = await client.get("/api/v1/imports", headers=other_headers)
    assert response.json()["data"] == []


async def test_rollback_endpoint(client, admin_headers):
    job = await _full_import(client, admin_headers)

    response = await client.post(f"/api/v1/imports/{job['id']}/rollback", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"rolled_back_count": 1}
    assert response.json()["message"] == "Rolled back 1 records."

    response = await client.get(f"/api/v1/imports/{job['id']}", headers=admin_headers)
    assert response.json()["data"]["status"] == "rolled_back"

    response = await client.post(f"/api/v1/imports/{job['id']}/rollback", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATE"


async def test_template_download(client, admin_headers):
    response = await client.get("/api/v1/imports/templates/guardians", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == (
        'attachment; filename="guardians_import_template.csv"'
    )
    header_line = response.text.splitlines()[0]
    assert header_line.startswith("Student First Name,Student Last Name")
