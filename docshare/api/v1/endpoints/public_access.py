"""
Public, password-gated document endpoints.

/pq serves quote links only; /lp serves quotes and preventions. Both
answer absent, revoked, expired and wrong-channel links with the same 404.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from docshare.database import get_db
from docshare.schemas.public_access import AccessRequest, PublicContentResponse, DocumentActionResponse
from docshare.services.public_access_service import PublicAccessService, DocumentAction
from docshare.models.document import DocumentType
from docshare.models.audit_log import ActionType
from docshare.core.logging_utils import sanitize_log_message, get_request_id
from docshare.middleware.rate_limit import rate_limit_public_access
from docshare.services.audit_service import AUDIT_STATUS_ERROR
from docshare.api.deps import AuditContext, get_public_audit_context

logger = logging.getLogger(__name__)

public_quote_router = APIRouter()
landing_page_router = APIRouter()

_ACTION_AUDIT = {
    DocumentAction.APPROVE: ActionType.QUOTE_APPROVED,
    DocumentAction.MARK_VIEWED: ActionType.PREVENTION_VIEWED,
}


async def _log_denied(audit_context: AuditContext, exc: HTTPException) -> None:
    await audit_context.log_action_now(
        ActionType.ACCESS_LINK_DENIED,
        resource_type="access_link",
        status=AUDIT_STATUS_ERROR,
        error_message=str(exc.detail),
        response_data={"status_code": exc.status_code}
    )


async def _open(
    db: AsyncSession,
    access_token: str,
    password: str,
    audit_context: AuditContext,
    document_type: Optional[DocumentType] = None
) -> PublicContentResponse:
    try:
        link, data = await PublicAccessService.open_link(db, access_token, password, document_type)
    except HTTPException as e:
        if e.status_code in (401, 404):
            await _log_denied(audit_context, e)
        raise

    await audit_context.log_action(
        action_type=ActionType.ACCESS_LINK_ACCESSED,
        resource_type="access_link",
        resource_id=link.id,
        tenant_id=link.tenant_id,
        response_data={"views_count": link.views_count}
    )
    return PublicContentResponse(data=data)


async def _act(
    db: AsyncSession,
    access_token: str,
    password: str,
    action: DocumentAction,
    audit_context: AuditContext,
    document_type: Optional[DocumentType] = None
) -> DocumentActionResponse:
    try:
        link, result = await PublicAccessService.perform_action(
            db, access_token, password, action, document_type
        )
    except HTTPException as e:
        if e.status_code in (401, 404):
            await _log_denied(audit_context, e)
        raise

    logger.info(
        sanitize_log_message(
            "Public document action applied",
            TenantID=link.tenant_id,
            LinkID=link.id,
            Action=action.value,
            RequestID=audit_context.request_id
        )
    )
    await audit_context.log_action(
        action_type=_ACTION_AUDIT[action],
        resource_type=link.document_type,
        resource_id=link.document_id,
        tenant_id=link.tenant_id,
        response_data=result.data
    )
    return DocumentActionResponse(data=result.data, meta={"code": result.code})


@public_quote_router.post("/{access_token}", response_model=PublicContentResponse)
@rate_limit_public_access()
async def access_public_quote(
    access_token: str,
    payload: AccessRequest,
    request: Request,
    audit_context: AuditContext = Depends(get_public_audit_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Return the frozen quote content of a link after password check.
    Counts one view.
    """
    return await _open(db, access_token, payload.password, audit_context, DocumentType.QUOTE)


@public_quote_router.patch("/{access_token}/approve", response_model=DocumentActionResponse)
@rate_limit_public_access()
async def approve_public_quote(
    access_token: str,
    payload: AccessRequest,
    request: Request,
    audit_context: AuditContext = Depends(get_public_audit_context),
    db: AsyncSession = Depends(get_db)
):
    """Approve the quote behind a link."""
    return await _act(
        db, access_token, payload.password, DocumentAction.APPROVE, audit_context, DocumentType.QUOTE
    )


@landing_page_router.post("/{access_token}", response_model=PublicContentResponse)
@rate_limit_public_access()
async def access_landing_page(
    access_token: str,
    payload: AccessRequest,
    request: Request,
    audit_context: AuditContext = Depends(get_public_audit_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Return the frozen content of a quote or prevention link after password check.
    Counts one view.
    """
    logger.debug(
        sanitize_log_message("Landing page access attempt", RequestID=get_request_id(request))
    )
    return await _open(db, access_token, payload.password, audit_context)


@landing_page_router.patch("/{access_token}/approve", response_model=DocumentActionResponse)
@rate_limit_public_access()
async def approve_landing_page_quote(
    access_token: str,
    payload: AccessRequest,
    request: Request,
    audit_context: AuditContext = Depends(get_public_audit_context),
    db: AsyncSession = Depends(get_db)
):
    """Approve a quote from its landing page. Preventions answer 400."""
    return await _act(db, access_token, payload.password, DocumentAction.APPROVE, audit_context)


@landing_page_router.patch("/{access_token}/mark-viewed", response_model=DocumentActionResponse)
@rate_limit_public_access()
async def mark_landing_page_viewed(
    access_token: str,
    payload: AccessRequest,
    request: Request,
    audit_context: AuditContext = Depends(get_public_audit_context),
    db: AsyncSession = Depends(get_db)
):
    """Mark a prevention as viewed. Quotes answer 400."""
    return await _act(db, access_token, payload.password, DocumentAction.MARK_VIEWED, audit_context)
