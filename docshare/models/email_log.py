from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
import enum
from docshare.database import Base


class EmailStatus(str, enum.Enum):
    """Delivery status of an outbound email."""
    SENT = "sent"
    FAILED = "failed"


class EmailLog(Base):
    """Email log model - one row per notification attempt."""

    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(20), nullable=False)
    document_id = Column(String(36), nullable=False, index=True)
    access_link_id = Column(String(36), nullable=True, index=True)
    recipient = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, index=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
