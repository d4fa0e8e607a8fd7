import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from docshare.models.document import (
    DocumentType,
    Quote,
    QuoteItem,
    QuoteStatus,
    Prevention,
    PreventionStatus,
)
from docshare.models.document_template import DocumentTemplate
from docshare.models.patient import Patient
from docshare.core.exceptions import (
    DocumentNotFoundException,
    DocumentStateConflictException,
    ValidationException,
)
from docshare.core.logging_utils import sanitize_log_message

logger = logging.getLogger(__name__)

SharedDocument = Union[Quote, Prevention]

_DOCUMENT_MODELS = {
    DocumentType.QUOTE: Quote,
    DocumentType.PREVENTION: Prevention,
}


@dataclass
class DocumentBundle:
    """A document together with everything its content package needs."""
    document: SharedDocument
    patient: Patient
    items: List[QuoteItem] = field(default_factory=list)
    template: Optional[Dict[str, Any]] = None


def parse_document_type(value: Union[str, DocumentType, None]) -> DocumentType:
    """
    Parse a document type from request input.

    Raises:
        ValidationException: If the value is not a shareable document type
    """
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DocumentType)
        raise ValidationException(detail=f"Invalid document type. Must be one of: {allowed}")


class DocumentService:
    """Service for reading and transitioning the documents behind access links."""

    @staticmethod
    async def get_document(
        db: AsyncSession,
        tenant_id: int,
        document_id: str,
        document_type: DocumentType
    ) -> SharedDocument:
        """
        Get a quote or prevention owned by a tenant.

        Raises:
            DocumentNotFoundException: If no such document exists for the tenant
        """
        model = _DOCUMENT_MODELS[document_type]
        result = await db.execute(
            select(model).where(
                model.id == document_id,
                model.tenant_id == tenant_id
            )
        )
        document = result.scalar_one_or_none()
        if not document:
            label = "Quote" if document_type == DocumentType.QUOTE else "Prevention"
            raise DocumentNotFoundException(detail=f"{label} not found")
        return document

    @staticmethod
    async def get_patient(
        db: AsyncSession,
        tenant_id: int,
        patient_id: str
    ) -> Optional[Patient]:
        result = await db.execute(
            select(Patient).where(
                Patient.id == patient_id,
                Patient.tenant_id == tenant_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_quote_items(db: AsyncSession, quote_id: str) -> List[QuoteItem]:
        result = await db.execute(
            select(QuoteItem)
            .where(QuoteItem.quote_id == quote_id)
            .order_by(QuoteItem.created_at.asc(), QuoteItem.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_template_content(
        db: AsyncSession,
        tenant_id: int,
        template_id: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        """
        Get the UI definition of a rendering template.

        Returns None (default template) when no id is given or the
        template does not exist.
        """
        if not template_id:
            return None
        result = await db.execute(
            select(DocumentTemplate).where(
                DocumentTemplate.id == template_id,
                DocumentTemplate.tenant_id == tenant_id
            )
        )
        template = result.scalar_one_or_none()
        if not template:
            logger.warning(
                sanitize_log_message(
                    "Template not found, using default template",
                    TenantID=tenant_id,
                    TemplateID=template_id
                )
            )
            return None
        return template.content

    @staticmethod
    async def load_bundle(
        db: AsyncSession,
        tenant_id: int,
        document_id: str,
        document_type: DocumentType,
        template_id: Optional[str] = None
    ) -> DocumentBundle:
        """
        Load a document, its patient, its items and its template.

        Raises:
            DocumentNotFoundException: If the document or its patient is missing
        """
        document = await DocumentService.get_document(db, tenant_id, document_id, document_type)
        patient = await DocumentService.get_patient(db, tenant_id, document.patient_id)
        if not patient:
            raise DocumentNotFoundException(detail="Patient not found for document")

        items: List[QuoteItem] = []
        if document_type == DocumentType.QUOTE:
            items = await DocumentService.get_quote_items(db, document.id)

        template = await DocumentService.get_template_content(db, tenant_id, template_id)
        return DocumentBundle(document=document, patient=patient, items=items, template=template)

    @staticmethod
    async def approve_quote(db: AsyncSession, quote: Quote) -> Quote:
        """
        Approve a quote on behalf of the patient.

        Raises:
            DocumentStateConflictException: If the quote is already approved,
                rejected or expired
        """
        if quote.status == QuoteStatus.APPROVED.value:
            raise DocumentStateConflictException(detail="This quote has already been approved")
        if quote.status in (QuoteStatus.REJECTED.value, QuoteStatus.EXPIRED.value):
            raise DocumentStateConflictException(
                detail="This quote cannot be approved in its current state"
            )

        quote.status = QuoteStatus.APPROVED.value
        await db.commit()
        await db.refresh(quote)

        logger.info(
            sanitize_log_message(
                "Quote approved by client",
                TenantID=quote.tenant_id,
                QuoteID=quote.id,
                QuoteNumber=quote.number
            )
        )
        return quote

    @staticmethod
    async def mark_prevention_viewed(db: AsyncSession, prevention: Prevention) -> Prevention:
        """Mark a prevention as viewed. No-op when it already is."""
        if prevention.status == PreventionStatus.VIEWED.value:
            return prevention

        prevention.status = PreventionStatus.VIEWED.value
        await db.commit()
        await db.refresh(prevention)
        return prevention
