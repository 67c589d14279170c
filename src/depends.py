import logging
from typing import Optional
from fastapi import Header, HTTPException, status
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.patient_directory import create_patient_directory
from src.app.services.patient_directory import PatientDirectory

logger = logging.getLogger(__name__)

SYSTEM_USER_ID = "system"


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """
    Start every SQLite transaction with BEGIN IMMEDIATE

    Writers take the database lock at the start of the transaction and
    queue behind the busy timeout.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(db_uri: str, busy_timeout: float = 30) -> AsyncEngine:
    if db_uri.startswith("sqlite"):
        engine = create_async_engine(
            db_uri, echo=False, future=True, connect_args={"timeout": busy_timeout}
        )
        configure_sqlite_engine(engine)
        return engine
    return create_async_engine(db_uri, echo=False, future=True)


engine = build_engine(ApplicationConfig.DB_URI, ApplicationConfig.DB_BUSY_TIMEOUT_SECONDS)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def init_models(target_engine: Optional[AsyncEngine] = None) -> None:
    async with (target_engine or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_patient_directory() -> PatientDirectory:
    return create_patient_directory(
        ApplicationConfig.PATIENT_SERVICE_URL,
        timeout=ApplicationConfig.PATIENT_SERVICE_TIMEOUT,
    )


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity of the caller, forwarded by the gateway in X-User-Id"""
    if x_user_id:
        return x_user_id
    if ApplicationConfig.AUTH_DISABLED:
        return SYSTEM_USER_ID
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing X-User-Id header",
    )
