import uuid
from sqlalchemy import Column, Integer, String, ForeignKey, JSON
from docshare.database import Base
from docshare.models.mixins import TimestampMixin


class DocumentTemplate(TimestampMixin, Base):
    """Rendering template for a shared document (opaque UI definition)."""

    __tablename__ = "document_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    content = Column(JSON, nullable=True)
