from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON, UniqueConstraint
from docshare.database import Base
from docshare.models.mixins import TimestampMixin

PUBLIC_LINK_PLACEHOLDER = "$PUBLIC_LINK$"
PASSWORD_BLOCK_PLACEHOLDER = "$PASSWORD_BLOCK$"
REQUIRED_PLACEHOLDERS = (PUBLIC_LINK_PLACEHOLDER, PASSWORD_BLOCK_PLACEHOLDER)


class EmailTemplate(TimestampMixin, Base):
    """Email template model - one per tenant and document type."""

    __tablename__ = "email_templates"
    __table_args__ = (
        UniqueConstraint("tenant_id", "document_type", name="uq_email_templates_tenant_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(20), nullable=False)
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    settings = Column(JSON, nullable=True)  # header/button colors, footer toggles
