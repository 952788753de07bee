"""Pytest fixtures for PayGuard tests."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from payguard.api.app import create_app
from payguard.compliance.engine import ComplianceEngine, create_compliance_engine
from payguard.config.settings import ExportSettings, Settings
from payguard.core.audit import ComplianceAuditor, InMemoryAuditSink
from payguard.db.config import create_session_factory
from payguard.db.gateway import SQLAlchemyStorageGateway
from payguard.db.models import Base
from payguard.storage.gateway import Row, TableName
from payguard.storage.memory import InMemoryStorageGateway

SUBJECT_ID = "emp-0001"
SUBJECT_USER_ID = "user-0001"
OTHER_SUBJECT_ID = "emp-0002"
OTHER_USER_ID = "user-0002"


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Subject data
# =============================================================================


def build_subject_rows(
    subject_id: str = SUBJECT_ID,
    user_id: str = SUBJECT_USER_ID,
    now: datetime | None = None,
) -> dict[TableName, list[Row]]:
    """Rows for one employee across every subject table.

    Ids are derived from ``subject_id`` so several subjects can share a
    store. The subject owns 12 records in total.
    """
    now = now or datetime.now(UTC)
    today = now.date()
    return {
        TableName.EMPLOYEES: [
            {
                "id": subject_id,
                "user_id": user_id,
                "company_id": "company-1",
                "first_name": "Alice",
                "last_name": "Smith",
                "email": "alice.smith@example.com",
                "date_of_birth": date(1990, 5, 17),
                "national_insurance_number": "QQ123456C",
                "address1": "1 High Street",
                "address2": "Flat 2",
                "address3": None,
                "address4": "London",
                "postcode": "SW1A 1AA",
                "department": "Finance",
                "payroll_id": "P-100",
                "tax_code": "1257L",
                "nic_code": "A",
                "hourly_rate": 18.5,
                "hours_per_week": 37.5,
                "hire_date": date(2019, 4, 1),
                "leave_date": None,
                "status": "active",
                "created_at": now - timedelta(days=2000),
                "updated_at": now - timedelta(days=10),
            }
        ],
        TableName.PAYROLL_RESULTS: [
            {
                "id": f"{subject_id}-pay-{n}",
                "employee_id": subject_id,
                "tax_year": "2025-26",
                "tax_period": n,
                "tax_code": "1257L",
                "gross_pay_this_period": 2500.0,
                "net_pay_this_period": 1980.5,
                "income_tax_this_period": 310.2,
                "created_at": now - timedelta(days=days),
            }
            for n, days in ((1, 30), (2, 60), (3, 900))
        ],
        TableName.TIMESHEET_ENTRIES: [
            {
                "id": f"{subject_id}-ts-{n}",
                "employee_id": subject_id,
                "payroll_id": "P-100",
                "date": today - timedelta(days=days),
                "scheduled_start": "09:00",
                "scheduled_end": "17:00",
                "actual_start": now - timedelta(days=days, hours=8),
                "actual_end": now - timedelta(days=days),
                "created_at": now - timedelta(days=days),
            }
            for n, days in ((1, 7), (2, 400))
        ],
        TableName.EMPLOYEE_SICKNESS_RECORDS: [
            {
                "id": f"{subject_id}-sick-1",
                "employee_id": subject_id,
                "start_date": today - timedelta(days=40),
                "end_date": today - timedelta(days=38),
                "total_days": 3.0,
                "reason": "Influenza",
                "notes": "Doctor's note provided",
                "created_at": now - timedelta(days=38),
            }
        ],
        TableName.WORK_PATTERNS: [
            {
                "id": f"{subject_id}-wp-{day.lower()}",
                "employee_id": subject_id,
                "payroll_id": "P-100",
                "day": day,
                "is_working": True,
                "start_time": "09:00",
                "end_time": "17:00",
            }
            for day in ("Monday", "Tuesday")
        ],
        TableName.DOCUMENTS: [
            {
                "id": f"{subject_id}-doc-1",
                "employee_id": subject_id,
                "company_id": "company-1",
                "title": "Employment contract",
                "file_name": "contract.pdf",
                "file_path": "/docs/contract.pdf",
                "mime_type": "application/pdf",
                "file_size": 20480,
                "uploaded_by": "hr-1",
                "created_at": now - timedelta(days=100),
            }
        ],
        TableName.DATA_ACCESS_AUDIT_LOG: [
            {
                "id": f"{subject_id}-log-{n}",
                "user_id": user_id,
                "accessed_table": "payroll_results",
                "accessed_record_id": f"{subject_id}-pay-1",
                "access_type": "read",
                "ip_address": "10.0.0.5",
                "user_agent": "Mozilla/5.0",
                "created_at": now - timedelta(days=days),
            }
            for n, days in ((1, 3), (2, 500))
        ],
    }


SUBJECT_RECORD_COUNT = 12


@pytest.fixture
def subject_rows() -> Callable[..., dict[TableName, list[Row]]]:
    """Factory building a subject's rows (see ``build_subject_rows``)."""
    return build_subject_rows


@pytest.fixture
def gateway() -> InMemoryStorageGateway:
    return InMemoryStorageGateway()


@pytest.fixture
def seed_subject(gateway: InMemoryStorageGateway) -> Callable[..., dict[TableName, list[str]]]:
    """Seed a subject into the in-memory gateway; returns ids per table."""

    def _seed(
        subject_id: str = SUBJECT_ID,
        user_id: str = SUBJECT_USER_ID,
        now: datetime | None = None,
    ) -> dict[TableName, list[str]]:
        rows = build_subject_rows(subject_id, user_id, now)
        for table, table_rows in rows.items():
            gateway.seed(table, table_rows)
        return {table: [row["id"] for row in table_rows] for table, table_rows in rows.items()}

    return _seed


@pytest.fixture
def subject(seed_subject) -> dict[TableName, list[str]]:
    """The default subject plus a second, unrelated subject."""
    ids = seed_subject()
    seed_subject(OTHER_SUBJECT_ID, OTHER_USER_ID)
    return ids


@pytest.fixture
def add_legal_hold(gateway: InMemoryStorageGateway) -> Callable[..., str]:
    def _add(table: TableName, record_id: str, subject_id: str = SUBJECT_ID, active: bool = True) -> str:
        hold_id = f"hold-{table.value}-{record_id}"
        gateway.seed(
            TableName.LEGAL_HOLDS,
            [
                {
                    "id": hold_id,
                    "subject_id": subject_id,
                    "table_name": table.value,
                    "record_id": record_id,
                    "reason": "Employment tribunal",
                    "is_active": active,
                }
            ],
        )
        return hold_id

    return _add


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def auditor(audit_sink: InMemoryAuditSink) -> ComplianceAuditor:
    return ComplianceAuditor(audit_sink)


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    return tmp_path / "exports"


@pytest.fixture
def test_settings(tmp_path: Path, export_dir: Path) -> Settings:
    """Create settings for testing."""
    return Settings(
        ENVIRONMENT="test",
        DEBUG=True,
        log_level="DEBUG",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'payguard.db'}",
        export=ExportSettings(export_directory=str(export_dir)),
    )


@pytest.fixture
def compliance_engine(
    gateway: InMemoryStorageGateway,
    audit_sink: InMemoryAuditSink,
    test_settings: Settings,
) -> ComplianceEngine:
    return create_compliance_engine(gateway, audit_sink, settings=test_settings)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gateway.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sql_gateway(db_engine: AsyncEngine) -> SQLAlchemyStorageGateway:
    return SQLAlchemyStorageGateway(create_session_factory(db_engine))


# =============================================================================
# API test fixtures
# =============================================================================


@pytest.fixture
def test_app(compliance_engine: ComplianceEngine, test_settings: Settings) -> FastAPI:
    return create_app(engine=compliance_engine, settings=test_settings)


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing.

    Calls the application directly through ASGITransport.
    """
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client
