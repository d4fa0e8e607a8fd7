import os
import tempfile
from pathlib import Path

# Test settings must be in place before any docshare module is imported
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test_docshare.db"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-fernet")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "docshare-test-logs"))
os.environ.setdefault("TQ_ORIGIN", "https://app.example.com")
os.environ.setdefault("ACCESS_LINK_PASSWORD_ROUNDS", "4")

import pytest
from decimal import Decimal
from typing import AsyncGenerator, Generator
from unittest.mock import patch
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from docshare.database import Base, get_db
from docshare.core.api_key import hash_api_key
from docshare.core.security import encrypt_secret
from docshare.models import (
    ApiKey,
    DocumentType,
    Patient,
    Prevention,
    PreventionStatus,
    Quote,
    QuoteItem,
    QuoteStatus,
    Tenant,
    TenantBranding,
    TenantCommunicationSettings,
)
from docshare.services.access_link_service import AccessLinkService, LinkChannel
from docshare.services.email_template_service import EmailTemplateService

STAFF_API_KEY = "test-staff-api-key-0123456789"
LINK_PASSWORD = "Ab3xZ9Qr"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
def client() -> Generator:
    """Create a sync test client (doesn't require db_session)."""
    from fastapi.testclient import TestClient
    from docshare.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator:
    """Create an async test client with database session override."""
    from httpx import AsyncClient, ASGITransport
    from docshare.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def tenant(db_session: AsyncSession) -> Tenant:
    """Active Brazilian tenant with branding."""
    tenant = Tenant(name="Clínica Sorriso", timezone="America/Sao_Paulo")
    db_session.add(tenant)
    await db_session.flush()
    db_session.add(TenantBranding(
        tenant_id=tenant.id,
        company_name="Clínica Sorriso",
        primary_color="#112233",
        phone="+55 11 99999-0000",
    ))
    await db_session.commit()
    await db_session.refresh(tenant)
    return tenant


@pytest.fixture
async def staff_api_key(db_session: AsyncSession, tenant: Tenant) -> ApiKey:
    api_key = ApiKey(
        tenant_id=tenant.id,
        name="Back office",
        key_hash=hash_api_key(STAFF_API_KEY),
        is_active=True
    )
    db_session.add(api_key)
    await db_session.commit()
    await db_session.refresh(api_key)
    return api_key


@pytest.fixture
def staff_headers(staff_api_key: ApiKey) -> dict:
    return {"X-API-Key": STAFF_API_KEY}


@pytest.fixture
async def patient(db_session: AsyncSession, tenant: Tenant) -> Patient:
    patient = Patient(
        tenant_id=tenant.id,
        first_name="Maria",
        last_name="Silva",
        email="maria.silva@example.com",
        phone="+55 11 98888-7777",
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


@pytest.fixture
async def quote(db_session: AsyncSession, tenant: Tenant, patient: Patient) -> Quote:
    """Quote Q-001 for $100.00 with one discounted line item."""
    quote = Quote(
        tenant_id=tenant.id,
        patient_id=patient.id,
        number="Q-001",
        total=Decimal("100.00"),
        content="Tratamento completo",
        status=QuoteStatus.SENT.value,
    )
    db_session.add(quote)
    await db_session.flush()
    db_session.add(QuoteItem(
        quote_id=quote.id,
        name="Limpeza",
        quantity=1,
        base_price=Decimal("120.00"),
        discount_amount=Decimal("20.00"),
        final_price=Decimal("100.00"),
    ))
    await db_session.commit()
    await db_session.refresh(quote)
    return quote


@pytest.fixture
async def prevention(db_session: AsyncSession, tenant: Tenant, patient: Patient) -> Prevention:
    prevention = Prevention(
        tenant_id=tenant.id,
        patient_id=patient.id,
        number="P-001",
        content="Relatório de prevenção",
        status=PreventionStatus.SENT.value,
    )
    db_session.add(prevention)
    await db_session.commit()
    await db_session.refresh(prevention)
    return prevention


@pytest.fixture
async def email_templates(db_session: AsyncSession, tenant: Tenant) -> int:
    return await EmailTemplateService.seed_defaults(db_session, tenant.id, "pt-BR")


@pytest.fixture
async def smtp_settings(db_session: AsyncSession, tenant: Tenant) -> TenantCommunicationSettings:
    row = TenantCommunicationSettings(
        tenant_id=tenant.id,
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_secure=True,
        smtp_username="mailer",
        smtp_password_encrypted=encrypt_secret("smtp-password"),
        smtp_from_email="no-reply@sorriso.example.com",
        smtp_from_name="Clínica Sorriso",
        cc_emails=[],
    )
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    return row


@pytest.fixture
def mock_smtp():
    """Patch the SMTP transport so no connection is attempted."""
    with patch("docshare.services.email_service.smtplib.SMTP") as smtp_class:
        yield smtp_class


@pytest.fixture
def make_link(db_session: AsyncSession, tenant: Tenant):
    """Create access links directly through the service (no email)."""
    async def _make(
        document,
        document_type: DocumentType = DocumentType.QUOTE,
        password: str = LINK_PASSWORD,
        expires_at=None,
        channel: LinkChannel = LinkChannel.LANDING_PAGE
    ):
        created = await AccessLinkService.create(
            db_session,
            tenant,
            document.id,
            document_type=document_type,
            password=password,
            expires_at=expires_at,
            channel=channel
        )
        return created.link

    return _make
