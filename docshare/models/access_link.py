import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from docshare.database import Base
from docshare.core.security import verify_password as verify_password_hash
from docshare.models.mixins import TimestampMixin, ensure_utc, utcnow


class AccessLink(TimestampMixin, Base):
    """
    Access link model - a password-protected public view of one document.

    The row carries a frozen content package; public viewers are served
    from it and never from the live document. The access token column is
    unique across all tenants and is how the public endpoints find the
    owning tenant.
    """

    __tablename__ = "access_links"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(String(36), nullable=False, index=True)
    document_type = Column(String(20), nullable=False, index=True)
    template_id = Column(String(36), nullable=True)
    access_token = Column(String(64), unique=True, nullable=False, index=True)
    public_url = Column(String(1024), nullable=False)
    content = Column(JSON, nullable=False)
    password_hash = Column(String(255), nullable=True)
    password_encrypted = Column(String(1024), nullable=True)  # Fernet token, staff re-display only
    views_count = Column(Integer, default=0, nullable=False)
    last_viewed_at = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once expires_at has passed. Links without expiry never expire."""
        if self.expires_at is None:
            return False
        return ensure_utc(self.expires_at) < (now or utcnow())

    def is_accessible(self, now: Optional[datetime] = None) -> bool:
        """Active and not expired. Password verification is a separate gate."""
        return bool(self.active) and not self.is_expired(now)

    def verify_password(self, plain_password: Optional[str]) -> bool:
        """
        Check a password against the stored hash.

        Links created without a password accept any input.
        """
        if not self.password_hash:
            return True
        if not plain_password:
            return False
        return verify_password_hash(plain_password, self.password_hash)

    def to_dict(self, password: Optional[str] = None) -> Dict[str, Any]:
        """Staff-facing representation with derived flags."""
        data = {
            "id": self.id,
            "tenantId": self.tenant_id,
            "documentId": self.document_id,
            "documentType": self.document_type,
            "templateId": self.template_id,
            "accessToken": self.access_token,
            "publicUrl": self.public_url,
            "content": self.content,
            "viewsCount": self.views_count or 0,
            "lastViewedAt": _isoformat(self.last_viewed_at),
            "active": bool(self.active),
            "expiresAt": _isoformat(self.expires_at),
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
            "hasPassword": bool(self.password_hash),
            "isExpired": self.is_expired(),
            "isAccessible": self.is_accessible(),
        }
        if password is not None:
            data["password"] = password
        return data


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None
