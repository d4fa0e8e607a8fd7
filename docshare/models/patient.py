import uuid
from sqlalchemy import Column, Integer, String, ForeignKey
from docshare.database import Base
from docshare.models.mixins import TimestampMixin


class Patient(TimestampMixin, Base):
    """Patient model - the recipient of shared documents."""

    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
