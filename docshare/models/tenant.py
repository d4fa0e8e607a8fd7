from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
import enum
from docshare.database import Base
from docshare.core.security import decrypt_secret


class TenantStatus(str, enum.Enum):
    """Tenant status enumeration."""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Tenant(Base):
    """Tenant model - one clinic/practice using the platform."""

    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    timezone = Column(String(64), nullable=True)  # IANA identifier, drives the locale
    status = Column(String(20), default=TenantStatus.ACTIVE.value, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE.value


class TenantBranding(Base):
    """Tenant branding model - colors, logo and contact details shown to patients."""

    __tablename__ = "tenant_branding"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    primary_color = Column(String(20), nullable=True)
    secondary_color = Column(String(20), nullable=True)
    tertiary_color = Column(String(20), nullable=True)
    logo_url = Column(String(1024), nullable=True)
    company_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(String(512), nullable=True)
    social_links = Column(JSON, nullable=True)  # {"facebook": ..., "instagram": ..., ...}
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class TenantCommunicationSettings(Base):
    """Tenant SMTP settings - used to build the outbound mail transport."""

    __tablename__ = "tenant_communication_settings"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    smtp_host = Column(String(255), nullable=False)
    smtp_port = Column(Integer, default=587, nullable=False)
    smtp_secure = Column(Boolean, default=True, nullable=False)
    smtp_username = Column(String(255), nullable=False)
    smtp_password_encrypted = Column(String(1024), nullable=False)  # Fernet token
    smtp_from_email = Column(String(255), nullable=False)
    smtp_from_name = Column(String(255), nullable=False)
    cc_emails = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def get_smtp_password(self) -> str:
        """Decrypted SMTP password."""
        return decrypt_secret(self.smtp_password_encrypted)

    @property
    def from_header(self) -> str:
        return f'"{self.smtp_from_name}" <{self.smtp_from_email}>'
