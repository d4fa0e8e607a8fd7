from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, JSON
from sqlalchemy.sql import func
import enum
from docshare.database import Base


class ActionType(str, enum.Enum):
    """Action type enumeration for audit logging."""
    ACCESS_LINK_CREATED = "access_link_created"
    ACCESS_LINK_REVOKED = "access_link_revoked"
    ACCESS_LINK_PASSWORD_RESET = "access_link_password_reset"
    ACCESS_LINK_ACCESSED = "access_link_accessed"
    ACCESS_LINK_DENIED = "access_link_denied"
    QUOTE_APPROVED = "quote_approved"
    PREVENTION_VIEWED = "prevention_viewed"
    EMAIL_SENT = "email_sent"
    EMAIL_FAILED = "email_failed"


class UserType(str, enum.Enum):
    """User type enumeration for audit logging."""
    API_KEY = "api_key"
    PUBLIC = "public"
    SYSTEM = "system"


class AuditLog(Base):
    """Audit log model - trail of link lifecycle and public access events."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action_type = Column(SQLEnum(ActionType), nullable=False, index=True)
    user_type = Column(SQLEnum(UserType), nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # api_key_id for staff calls
    tenant_id = Column(Integer, nullable=True, index=True)
    resource_type = Column(String, nullable=True, index=True)  # e.g. "access_link", "quote"
    resource_id = Column(String, nullable=True, index=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    request_data = Column(JSON, nullable=True)
    response_data = Column(JSON, nullable=True)
    status = Column(String, nullable=False, index=True)  # "success" or "error"
    error_message = Column(String, nullable=True)
    request_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
