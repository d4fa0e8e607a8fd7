import enum
import logging
from typing import Any, Awaitable, Callable, Dict, NamedTuple, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from docshare.models.access_link import AccessLink
from docshare.models.document import DocumentType
from docshare.core.exceptions import (
    AccessLinkNotFoundException,
    InvalidPasswordException,
    UnsupportedDocumentActionException,
)
from docshare.core.logging_utils import sanitize_log_message
from docshare.services.access_link_service import AccessLinkService
from docshare.services.document_service import DocumentService
from docshare.services.tenant_service import TenantService

logger = logging.getLogger(__name__)


class DocumentAction(str, enum.Enum):
    """Actions a public viewer can take on the shared document."""
    APPROVE = "approve"
    MARK_VIEWED = "mark-viewed"


class ActionResult(NamedTuple):
    data: Dict[str, Any]
    code: str


async def _approve_quote(db: AsyncSession, link: AccessLink) -> ActionResult:
    quote = await DocumentService.get_document(db, link.tenant_id, link.document_id, DocumentType.QUOTE)
    quote = await DocumentService.approve_quote(db, quote)
    return ActionResult({"approved": True, "quoteNumber": quote.number}, "QUOTE_APPROVED_BY_CLIENT")


async def _mark_prevention_viewed(db: AsyncSession, link: AccessLink) -> ActionResult:
    prevention = await DocumentService.get_document(
        db, link.tenant_id, link.document_id, DocumentType.PREVENTION
    )
    prevention = await DocumentService.mark_prevention_viewed(db, prevention)
    return ActionResult({"viewed": True, "preventionNumber": prevention.number}, "PREVENTION_MARKED_VIEWED")


ActionHandler = Callable[[AsyncSession, AccessLink], Awaitable[ActionResult]]

# Which actions each document type supports
DOCUMENT_ACTIONS: Dict[str, Dict[DocumentAction, ActionHandler]] = {
    DocumentType.QUOTE.value: {DocumentAction.APPROVE: _approve_quote},
    DocumentType.PREVENTION.value: {DocumentAction.MARK_VIEWED: _mark_prevention_viewed},
}

UNSUPPORTED_ACTION_MESSAGES = {
    DocumentAction.APPROVE: "Only quotes can be approved via landing page",
    DocumentAction.MARK_VIEWED: "Only preventions can be marked as viewed",
}


class PublicAccessService:
    """Password-gated access to shared documents for anonymous viewers."""

    @staticmethod
    async def resolve_link(
        db: AsyncSession,
        access_token: str,
        password: Optional[str],
        document_type: Optional[DocumentType] = None
    ) -> AccessLink:
        """
        Run the access checks for a token.

        Absent, revoked, expired and wrong-channel links all raise the same
        not-found error. Only a link that passes those checks can answer
        with a password error.

        Args:
            db: Database session
            access_token: Token from the public URL
            password: Password supplied by the viewer
            document_type: Restrict to one document type (the /pq channel)

        Returns:
            The accessible, authenticated link

        Raises:
            AccessLinkNotFoundException: 404
            InvalidPasswordException: 401
        """
        link = await AccessLinkService.find_by_token(db, access_token)

        if document_type is not None and link.document_type != document_type.value:
            raise AccessLinkNotFoundException()

        if link.is_expired():
            logger.info(
                sanitize_log_message(
                    "Expired access link requested",
                    TenantID=link.tenant_id,
                    LinkID=link.id
                )
            )
            raise AccessLinkNotFoundException()

        if not await run_in_threadpool(link.verify_password, password):
            logger.warning(
                sanitize_log_message(
                    "Invalid password for access link",
                    TenantID=link.tenant_id,
                    LinkID=link.id
                )
            )
            raise InvalidPasswordException()

        return link

    @staticmethod
    async def open_link(
        db: AsyncSession,
        access_token: str,
        password: Optional[str],
        document_type: Optional[DocumentType] = None
    ) -> Tuple[AccessLink, Dict[str, Any]]:
        """
        Serve the frozen content of a link and count the view.

        Returns:
            Tuple of (link, {"content", "branding"})
        """
        link = await PublicAccessService.resolve_link(db, access_token, password, document_type)
        await AccessLinkService.increment_views(db, link)

        tenant = await TenantService.get_tenant(db, link.tenant_id)
        branding = await TenantService.get_public_branding(db, tenant)

        return link, {"content": link.content, "branding": branding}

    @staticmethod
    async def perform_action(
        db: AsyncSession,
        access_token: str,
        password: Optional[str],
        action: DocumentAction,
        document_type: Optional[DocumentType] = None
    ) -> Tuple[AccessLink, ActionResult]:
        """
        Apply a document action after the regular access checks.

        Raises:
            UnsupportedDocumentActionException: If the link's document type
                does not support the action (400)
            DocumentStateConflictException: If the document state forbids it (409)
        """
        link = await PublicAccessService.resolve_link(db, access_token, password, document_type)

        handler = DOCUMENT_ACTIONS.get(link.document_type, {}).get(action)
        if handler is None:
            raise UnsupportedDocumentActionException(detail=UNSUPPORTED_ACTION_MESSAGES[action])

        return link, await handler(db, link)
