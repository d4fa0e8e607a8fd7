"""Database models."""
from docshare.models.tenant import Tenant, TenantStatus, TenantBranding, TenantCommunicationSettings
from docshare.models.patient import Patient
from docshare.models.document import (
    DocumentType,
    Quote,
    QuoteItem,
    QuoteStatus,
    Prevention,
    PreventionStatus,
)
from docshare.models.document_template import DocumentTemplate
from docshare.models.email_template import EmailTemplate
from docshare.models.access_link import AccessLink
from docshare.models.email_log import EmailLog, EmailStatus
from docshare.models.api_key import ApiKey
from docshare.models.audit_log import AuditLog, ActionType, UserType

__all__ = [
    "Tenant",
    "TenantStatus",
    "TenantBranding",
    "TenantCommunicationSettings",
    "Patient",
    "DocumentType",
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "Prevention",
    "PreventionStatus",
    "DocumentTemplate",
    "EmailTemplate",
    "AccessLink",
    "EmailLog",
    "EmailStatus",
    "ApiKey",
    "AuditLog",
    "ActionType",
    "UserType",
]
