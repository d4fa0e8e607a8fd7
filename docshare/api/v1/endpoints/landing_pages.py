import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from docshare.database import get_db
from docshare.schemas.access_link import LandingPageCreateRequest
from docshare.services.access_link_service import AccessLinkService, LinkChannel
from docshare.services.document_service import parse_document_type
from docshare.services.tenant_service import TenantService
from docshare.models.tenant import Tenant
from docshare.models.audit_log import ActionType
from docshare.core.logging_utils import sanitize_log_message
from docshare.api.deps import AuditContext, get_current_tenant, get_audit_context_with_api_key

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_landing_pages(
    active: Optional[bool] = None,
    document_type: Optional[str] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """List the tenant's links, newest first."""
    links = await AccessLinkService.list_links(
        db,
        tenant.id,
        active=active,
        document_type=parse_document_type(document_type) if document_type else None,
        created_from=created_from,
        created_to=created_to
    )
    return {"data": [link.to_dict() for link in links], "meta": {"total": len(links)}}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_landing_page(
    payload: LandingPageCreateRequest,
    tenant: Tenant = Depends(get_current_tenant),
    audit_context: AuditContext = Depends(get_audit_context_with_api_key),
    db: AsyncSession = Depends(get_db)
):
    """
    Share a quote or prevention through a password-protected /lp link
    and email it to the patient. The plain password is only returned here.
    """
    created = await AccessLinkService.create_and_notify(
        db,
        tenant,
        payload.document_id,
        document_type=payload.document_type,
        template_id=payload.template_id,
        password=payload.password,
        auto_generate_password=payload.auto_generate_password,
        expires_at=payload.expires_at,
        channel=LinkChannel.LANDING_PAGE
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
            "code": "LANDING_PAGE_CREATED",
            "password": created.password,
            "publicUrl": link.public_url,
            "emailSent": created.email_sent,
        },
    }


@router.get("/preview")
async def preview_landing_page(
    document_id: str = Query(..., min_length=1),
    document_type: str = "quote",
    template_id: Optional[str] = None,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """
    Content package of a document as a link created now would freeze it.
    Nothing is persisted.
    """
    _, _, content = await AccessLinkService.build_content(
        db, tenant, document_id, parse_document_type(document_type), template_id
    )
    branding = await TenantService.get_public_branding(db, tenant)
    return {"data": {"content": content, "branding": branding}}


@router.get("/by-document/{document_id}")
async def list_landing_pages_by_document(
    document_id: str,
    document_type: Optional[str] = None,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """Active links of a document, newest first."""
    links = await AccessLinkService.find_by_document(
        db,
        tenant.id,
        document_id,
        parse_document_type(document_type) if document_type else None
    )
    return {"data": [link.to_dict() for link in links]}


@router.get("/{link_id}")
async def get_landing_page(
    link_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """Link details, including the current password for re-sharing."""
    link = await AccessLinkService.find_by_id(db, tenant.id, link_id)
    return {"data": link.to_dict(password=AccessLinkService.get_decrypted_password(link))}


@router.delete("/{link_id}")
async def revoke_landing_page(
    link_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    audit_context: AuditContext = Depends(get_audit_context_with_api_key),
    db: AsyncSession = Depends(get_db)
):
    """Revoke a link. Public requests for it answer 404 from now on."""
    link = await AccessLinkService.find_by_id(db, tenant.id, link_id)
    link = await AccessLinkService.revoke(db, link)

    await audit_context.log_action(
        action_type=ActionType.ACCESS_LINK_REVOKED,
        resource_type="access_link",
        resource_id=link.id
    )
    return {"data": link.to_dict(), "meta": {"code": "LANDING_PAGE_REVOKED"}}


@router.post("/{link_id}/new-password")
async def reset_landing_page_password(
    link_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    audit_context: AuditContext = Depends(get_audit_context_with_api_key),
    db: AsyncSession = Depends(get_db)
):
    """Generate a new password for a link and email it to the patient."""
    link = await AccessLinkService.find_by_id(db, tenant.id, link_id)
    password, email_sent = await AccessLinkService.reset_password_and_notify(
        db, tenant, link, channel=LinkChannel.LANDING_PAGE
    )

    logger.info(
        sanitize_log_message(
            "Landing page password reset",
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
        "meta": {"code": "LANDING_PAGE_PASSWORD_RESET", "password": password, "emailSent": email_sent},
    }
