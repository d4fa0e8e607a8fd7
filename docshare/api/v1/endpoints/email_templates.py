from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from docshare.database import get_db
from docshare.schemas.email_template import (
    EmailTemplateUpdateRequest,
    EmailTemplateResponse,
    EmailPreviewResponse,
)
from docshare.services.email_template_service import EmailTemplateService, get_default_template
from docshare.services.email_renderer import render_preview
from docshare.services.document_service import parse_document_type
from docshare.services.tenant_service import TenantService
from docshare.models.document import DocumentType
from docshare.models.tenant import Tenant
from docshare.core.locale import resolve_locale
from docshare.api.deps import get_current_tenant

router = APIRouter()


async def _current_template(db: AsyncSession, tenant: Tenant, document_type: DocumentType) -> EmailTemplateResponse:
    template = await EmailTemplateService.get_template(db, tenant.id, document_type)
    if template:
        return EmailTemplateResponse(
            document_type=document_type.value,
            **EmailTemplateService.to_render_dict(template)
        )
    return EmailTemplateResponse(
        document_type=document_type.value,
        is_default=True,
        **get_default_template(document_type, resolve_locale(tenant.timezone))
    )


@router.get("/{document_type}", response_model=EmailTemplateResponse)
async def get_email_template(
    document_type: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """Saved template of a document type, or the locale default when none is saved."""
    return await _current_template(db, tenant, parse_document_type(document_type))


@router.put("/{document_type}", response_model=EmailTemplateResponse)
async def update_email_template(
    document_type: str,
    payload: EmailTemplateUpdateRequest,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """
    Save the template of a document type.
    The body must keep both $PUBLIC_LINK$ and $PASSWORD_BLOCK$.
    """
    parsed_type = parse_document_type(document_type)
    template = await EmailTemplateService.upsert_template(
        db,
        tenant.id,
        parsed_type,
        subject=payload.subject,
        body=payload.body,
        settings=payload.settings
    )
    return EmailTemplateResponse(
        document_type=parsed_type.value,
        **EmailTemplateService.to_render_dict(template)
    )


@router.get("/{document_type}/preview", response_model=EmailPreviewResponse)
async def preview_email_template(
    document_type: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """Render the current template with sample values."""
    current = await _current_template(db, tenant, parse_document_type(document_type))
    branding = await TenantService.get_email_branding(db, tenant)
    rendered = render_preview(
        {"subject": current.subject, "body": current.body, "settings": current.settings},
        branding,
        resolve_locale(tenant.timezone)
    )
    return EmailPreviewResponse(subject=rendered.subject, html=rendered.html, text=rendered.text)
