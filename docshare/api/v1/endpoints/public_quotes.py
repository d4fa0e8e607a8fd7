import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from docshare.database import get_db
from docshare.schemas.access_link import PublicQuoteCreateRequest
from docshare.services.access_link_service import AccessLinkService, LinkChannel
from docshare.models.access_link import AccessLink
from docshare.models.document import DocumentType
from docshare.models.tenant import Tenant
from docshare.models.audit_log import ActionType
from docshare.core.exceptions import ResourceNotFoundException
from docshare.core.logging_utils import sanitize_log_message
from docshare.api.deps import AuditContext, get_current_tenant, get_audit_context_with_api_key

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_quote_link(db: AsyncSession, tenant: Tenant, link_id: str) -> AccessLink:
    link = await AccessLinkService.find_by_id(db, tenant.id, link_id)
    if link.document_type != DocumentType.QUOTE.value:
        raise ResourceNotFoundException(detail="Access link not found")
    return link


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_public_quote(
    payload: PublicQuoteCreateRequest,
    tenant: Tenant = Depends(get_current_tenant),
    audit_context: AuditContext = Depends(get_audit_context_with_api_key),
    db: AsyncSession = Depends(get_db)
):
    """
    Share a quote through a password-protected /pq link and email it to the patient.
    The plain password is only returned here.
    """
    created = await AccessLinkService.create_and_notify(
        db,
        tenant,
        payload.quote_id,
        document_type=DocumentType.QUOTE,
        template_id=payload.template_id,
        password=payload.password,
        auto_generate_password=payload.auto_generate_password,
        expires_at=payload.expires_at,
        channel=LinkChannel.PUBLIC_QUOTE
    )
    link = created.link

    await audit_context.log_action(
        action_type=ActionType.ACCESS_LINK_CREATED,
        resource_type="access_link",
        resource_id=link.id,
        request_data=payload.model_dump(mode="json", exclude={"password"}),
        response_data={"email_sent": created.email_sent}
    )

    return {
        "data": link.to_dict(),
        "meta": {
            "code": "PUBLIC_QUOTE_CREATED",
            "password": created.password,
            "publicUrl": link.public_url,
            "emailSent": created.email_sent,
        },
    }


@router.get("/by-quote/{quote_id}")
async def list_public_quotes_by_quote(
    quote_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """Active links of a quote, newest first."""
    links = await AccessLinkService.find_by_document(db, tenant.id, quote_id, DocumentType.QUOTE)
    return {"data": [link.to_dict() for link in links]}


@router.delete("/{link_id}")
async def revoke_public_quote(
    link_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    audit_context: AuditContext = Depends(get_audit_context_with_api_key),
    db: AsyncSession = Depends(get_db)
):
    """Revoke a link. Public requests for it answer 404 from now on."""
    link = await _get_quote_link(db, tenant, link_id)
    link = await AccessLinkService.revoke(db, link)

    await audit_context.log_action(
        action_type=ActionType.ACCESS_LINK_REVOKED,
        resource_type="access_link",
        resource_id=link.id
    )
    return {"data": link.to_dict(), "meta": {"code": "PUBLIC_QUOTE_REVOKED"}}


@router.post("/{link_id}/new-password")
async def reset_public_quote_password(
    link_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    audit_context: AuditContext = Depends(get_audit_context_with_api_key),
    db: AsyncSession = Depends(get_db)
):
    """Generate a new password for a link and email it to the patient."""
    link = await _get_quote_link(db, tenant, link_id)
    password, email_sent = await AccessLinkService.reset_password_and_notify(
        db, tenant, link, channel=LinkChannel.PUBLIC_QUOTE
    )

    logger.info(
        sanitize_log_message(
            "Public quote password reset",
            TenantID=tenant.id,
            LinkID=link.id,
            EmailSent=email_sent,
            RequestID=audit_context.request_id
        )
    )
    await audit_context.log_action(
        action_type=ActionType.ACCESS_LINK_PASSWORD_RESET,
        resource_type="access_link",
        resource_id=link.id,
        response_data={"email_sent": email_sent}
    )
    return {
        "data": link.to_dict(),
        "meta": {"code": "PUBLIC_QUOTE_PASSWORD_RESET", "password": password, "emailSent": email_sent},
    }
