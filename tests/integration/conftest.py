import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import (
    build_engine,
    init_models,
    get_session,
    get_patient_directory,
    get_current_user_id,
)
from src.adapter.services.patient_directory import AllowAllPatientDirectory

TEST_USER_ID = "user_42"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a file-backed SQLite database per test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'billing_test.db'}"

    engine = build_engine(test_db_url, busy_timeout=30)
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(session_factory):
    """Application with database, patient and identity dependencies overridden"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # One session per request, like the production dependency
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_patient_directory] = lambda: AllowAllPatientDirectory()
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    return app


@pytest_asyncio.fixture
async def client(app):
    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
