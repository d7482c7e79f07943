from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.database.base import Base
from src.core.database import get_db
from src.main import app
from src.modules.directory.models import Enrollment, Family, Location, Service, Student
from src.modules.invoices.models import Invoice, InvoiceLineItem, Payment  # noqa: F401
from src.modules.revenue.models import RevenueRecord  # noqa: F401

# In-memory SQLite; StaticPool keeps one connection so every session sees the same database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh database for each test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def directory(db_session: AsyncSession) -> dict:
    """
    Seed reference data: locations, services, one family with a student and
    enrollments in a mapped service, an unmapped service and an elective class.
    """
    locations = {
        code: Location(code=code, name=name)
        for code, name in (
            ("kendall", "Kendall Campus"),
            ("homestead", "Homestead Campus"),
            ("remote", "Remote"),
        )
    }
    services = {
        code: Service(code=code, name=name)
        for code, name in (
            ("learning_pod", "Learning Pod"),
            ("academic_coaching", "Academic Coaching"),
            ("elective_classes", "Elective Classes"),
            ("eaton_online", "Eaton Online"),
        )
    }
    db_session.add_all([*locations.values(), *services.values()])

    family = Family(name="Rivera")
    db_session.add(family)
    await db_session.flush()

    student = Student(family_id=family.id, first_name="Ana", last_name="Rivera")
    db_session.add(student)
    await db_session.flush()

    enrollments = {
        "pod": Enrollment(
            family_id=family.id,
            student_id=student.id,
            service_id=services["learning_pod"].id,
        ),
        "coaching": Enrollment(
            family_id=family.id,
            student_id=student.id,
            service_id=services["academic_coaching"].id,
        ),
        "spanish": Enrollment(
            family_id=family.id,
            student_id=student.id,
            service_id=services["elective_classes"].id,
            class_title="Spanish 101 (Online)",
        ),
        "bitcoin": Enrollment(
            family_id=family.id,
            student_id=student.id,
            service_id=services["elective_classes"].id,
            class_title="Bitcoin Basics",
        ),
    }
    db_session.add_all(enrollments.values())
    await db_session.commit()

    return {
        "locations": locations,
        "services": services,
        "family": family,
        "student": student,
        "enrollments": enrollments,
    }
