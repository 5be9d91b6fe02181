import os
from dataclasses import dataclass
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_SECRET_KEY"] = "test-secret"
os.environ["APP_ENV"] = "development"

from app.database import create_engine, create_session_factory, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, SchoolClass, Student, Tenant, TenantRole, TenantUser, User  # noqa: E402
from app.utils.security import create_access_token  # noqa: E402
from app.utils.tenant_context import clear_all_context  # noqa: E402


@dataclass
class SeededTenant:
    tenant_id: UUID
    admin_id: UUID
    guide_role_id: UUID
    class_id: UUID


@pytest.fixture()
async def engine():
    test_engine = create_engine("sqlite+aiosqlite://")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
async def db(engine):
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session
    clear_all_context()


@pytest.fixture()
async def tenant(db) -> SeededTenant:
    school = Tenant(name="Banksia Montessori", slug="banksia")
    db.add(school)
    await db.flush()

    admin = User(
        email="admin@banksia.edu.au",
        password_hash="not-a-real-hash",
        first_name="Ada",
        last_name="Admin",
    )
    admin_role = TenantRole(tenant_id=school.id, name="Admin")
    guide_role = TenantRole(tenant_id=school.id, name="Guide")
    wattle = SchoolClass(tenant_id=school.id, name="Wattle Room")
    db.add_all([admin, admin_role, guide_role, wattle])
    await db.flush()

    db.add(TenantUser(tenant_id=school.id, user_id=admin.id, role_id=admin_role.id))
    await db.commit()

    return SeededTenant(
        tenant_id=school.id,
        admin_id=admin.id,
        guide_role_id=guide_role.id,
        class_id=wattle.id,
    )


@pytest.fixture()
async def other_tenant(db) -> UUID:
    school = Tenant(name="Grevillea Primary", slug="grevillea")
    db.add(school)
    await db.commit()
    return school.id


async def _create_student(db, tenant_id: UUID, first_name: str, last_name: str) -> Student:
    student = Student(tenant_id=tenant_id, first_name=first_name, last_name=last_name)
    db.add(student)
    await db.commit()
    return student


@pytest.fixture()
def create_student(db):
    async def factory(tenant_id: UUID, first_name: str, last_name: str) -> Student:
        return await _create_student(db, tenant_id, first_name, last_name)

    return factory


@pytest.fixture()
async def client(db):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers(tenant) -> dict[str, str]:
    token = create_access_token(tenant.admin_id, tenant.tenant_id, role="SCHOOL_ADMIN")
    return {"Authorization": f"Bearer {token}"}
