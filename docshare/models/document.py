import uuid
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
import enum
from docshare.database import Base
from docshare.models.mixins import TimestampMixin


class DocumentType(str, enum.Enum):
    """Document types that can be shared through an access link."""
    QUOTE = "quote"
    PREVENTION = "prevention"


class QuoteStatus(str, enum.Enum):
    """Quote status enumeration."""
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class PreventionStatus(str, enum.Enum):
    """Prevention (clinical report) status enumeration."""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"


class Quote(TimestampMixin, Base):
    """Quote model - a priced treatment proposal for a patient."""

    __tablename__ = "quotes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    number = Column(String(50), nullable=False, index=True)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    content = Column(Text, nullable=True)
    status = Column(String(20), default=QuoteStatus.DRAFT.value, nullable=False, index=True)


class QuoteItem(Base):
    """Quote line item - final_price is computed upstream."""

    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(String(36), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    base_price = Column(Numeric(12, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
    final_price = Column(Numeric(12, 2), default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Prevention(TimestampMixin, Base):
    """Prevention model - a clinical report shared with the patient."""

    __tablename__ = "preventions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    number = Column(String(50), nullable=False, index=True)
    content = Column(Text, nullable=True)
    status = Column(String(20), default=PreventionStatus.DRAFT.value, nullable=False, index=True)
