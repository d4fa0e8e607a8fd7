import enum
import logging
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from docshare.config import settings
from docshare.models.access_link import AccessLink
from docshare.models.document import DocumentType
from docshare.models.mixins import ensure_utc, utcnow
from docshare.models.tenant import Tenant, TenantStatus
from docshare.core.exceptions import (
    AccessLinkNotFoundException,
    EmailDeliveryException,
    PasswordResetException,
    ResourceNotFoundException,
    ValidationException,
)
from docshare.core.locale import resolve_locale
from docshare.core.logging_utils import sanitize_log_message
from docshare.core.security import (
    decrypt_secret,
    encrypt_secret,
    generate_access_token,
    generate_link_password,
    get_password_hash,
)
from docshare.services.content_package import build_content_package
from docshare.services.document_service import DocumentBundle, DocumentService
from docshare.services.email_service import EmailService

logger = logging.getLogger(__name__)


class LinkChannel(str, enum.Enum):
    """Public path a link is served under."""
    PUBLIC_QUOTE = "pq"
    LANDING_PAGE = "lp"


EMAIL_FAILURE_CODES = {
    LinkChannel.PUBLIC_QUOTE: EmailDeliveryException.PUBLIC_QUOTE_EMAIL_FAILED,
    LinkChannel.LANDING_PAGE: EmailDeliveryException.LANDING_PAGE_EMAIL_FAILED,
}

NEW_PASSWORD_FAILURE_CODES = {
    LinkChannel.PUBLIC_QUOTE: PasswordResetException.PUBLIC_QUOTE_NEW_PASSWORD_FAILED,
    LinkChannel.LANDING_PAGE: PasswordResetException.LANDING_PAGE_NEW_PASSWORD_FAILED,
}


class CreatedAccessLink(NamedTuple):
    """Result of creating a link: the row, its plain password and its source."""
    link: AccessLink
    password: Optional[str]
    bundle: DocumentBundle
    locale: str
    email_sent: bool = False


class PasswordState(NamedTuple):
    """Stored password columns, kept so a rotation can be undone."""
    password_hash: Optional[str]
    password_encrypted: Optional[str]


class AccessLinkService:
    """Service for access link persistence and lifecycle."""

    @staticmethod
    def build_public_url(channel: LinkChannel, access_token: str) -> str:
        return f"{settings.get_public_base_url()}/{channel.value}/{access_token}"

    @staticmethod
    async def hash_password(password: str) -> str:
        """bcrypt hash off the event loop."""
        return await run_in_threadpool(get_password_hash, password)

    @staticmethod
    async def build_content(
        db: AsyncSession,
        tenant: Tenant,
        document_id: str,
        document_type: DocumentType,
        template_id: Optional[str] = None
    ) -> Tuple[DocumentBundle, str, Dict[str, Any]]:
        """
        Build the content package of a document as it is right now.

        Link creation and the staff preview both go through here so the
        two never diverge.

        Returns:
            Tuple of (bundle, locale, content package)
        """
        bundle = await DocumentService.load_bundle(
            db, tenant.id, document_id, document_type, template_id
        )
        locale = resolve_locale(tenant.timezone)
        content = build_content_package(
            bundle.template,
            bundle.document,
            bundle.patient,
            bundle.items,
            locale=locale,
            document_type=document_type.value,
        )
        return bundle, locale, content

    @staticmethod
    async def create(
        db: AsyncSession,
        tenant: Tenant,
        document_id: str,
        document_type: DocumentType = DocumentType.QUOTE,
        template_id: Optional[str] = None,
        password: Optional[str] = None,
        auto_generate_password: bool = True,
        expires_at: Optional[datetime] = None,
        channel: LinkChannel = LinkChannel.LANDING_PAGE
    ) -> CreatedAccessLink:
        """
        Snapshot a document into a new access link.

        The content package is built from the live document once, here,
        and never rebuilt afterwards.

        Args:
            db: Database session
            tenant: Owning tenant
            document_id: Quote or prevention ID
            document_type: Type of the document
            template_id: Optional rendering template, None for the default
            password: Explicit password; generated when omitted and
                auto_generate_password is set
            auto_generate_password: Generate a password when none is given
            expires_at: Optional expiry
            channel: Public path the link is served under

        Returns:
            CreatedAccessLink with the plain password (shown once)

        Raises:
            DocumentNotFoundException: If the document or its patient is missing
        """
        bundle, locale, content = await AccessLinkService.build_content(
            db, tenant, document_id, document_type, template_id
        )

        plain_password = password or (generate_link_password() if auto_generate_password else None)
        password_hash = None
        if plain_password:
            password_hash = await AccessLinkService.hash_password(plain_password)

        access_token = generate_access_token()
        link = AccessLink(
            tenant_id=tenant.id,
            document_id=bundle.document.id,
            document_type=document_type.value,
            template_id=template_id,
            access_token=access_token,
            public_url=AccessLinkService.build_public_url(channel, access_token),
            content=content,
            password_hash=password_hash,
            password_encrypted=encrypt_secret(plain_password),
            views_count=0,
            active=True,
            expires_at=ensure_utc(expires_at),
        )

        db.add(link)
        await db.commit()
        await db.refresh(link)

        logger.info(
            sanitize_log_message(
                "Access link created",
                TenantID=tenant.id,
                LinkID=link.id,
                DocumentType=document_type.value,
                DocumentID=link.document_id,
                Locale=locale
            )
        )
        return CreatedAccessLink(link=link, password=plain_password, bundle=bundle, locale=locale)

    @staticmethod
    async def create_and_notify(
        db: AsyncSession,
        tenant: Tenant,
        document_id: str,
        document_type: DocumentType = DocumentType.QUOTE,
        channel: LinkChannel = LinkChannel.LANDING_PAGE,
        **options
    ) -> CreatedAccessLink:
        """
        Create a link and email it to the patient.

        Two steps, each committed on its own: the link is persisted, then
        the email is sent. If sending fails the link is deleted before the
        error propagates, so no link exists that the patient was never told
        about. Patients without an email address get the link only.

        Failures are reported with the email failure code of the channel,
        whatever the document type.

        Raises:
            DocumentNotFoundException: If the document or its patient is missing
            EmailDeliveryException: If the notification could not be sent
        """
        created = await AccessLinkService.create(
            db, tenant, document_id, document_type=document_type, channel=channel, **options
        )
        if not created.bundle.patient.email:
            logger.info(
                sanitize_log_message(
                    "Patient has no email address, link created without notification",
                    TenantID=tenant.id,
                    LinkID=created.link.id
                )
            )
            return created

        try:
            await EmailService.send_access_link_email(
                db,
                tenant,
                created.link,
                created.bundle,
                created.password,
                created.locale,
                failure_code=EMAIL_FAILURE_CODES[channel]
            )
        except EmailDeliveryException as e:
            logger.warning(
                sanitize_log_message(
                    "Deleting access link after notification failure",
                    TenantID=tenant.id,
                    LinkID=created.link.id,
                    Code=e.code
                )
            )
            await AccessLinkService.delete(db, created.link)
            raise

        return created._replace(email_sent=True)

    @staticmethod
    async def reset_password_and_notify(
        db: AsyncSession,
        tenant: Tenant,
        link: AccessLink,
        channel: LinkChannel = LinkChannel.LANDING_PAGE
    ) -> Tuple[str, bool]:
        """
        Rotate the password of a link and email the new one.

        The previous hash is restored if the email cannot be sent. Errors are
        reported with the codes of the channel the staff screen manages.

        Returns:
            Tuple of (new plain password, whether an email was sent)

        Raises:
            ValidationException: If the link has been revoked
            DocumentNotFoundException: If the source document no longer exists
            EmailDeliveryException: If the notification could not be sent
            PasswordResetException: If the new password could not be stored
        """
        if not link.active:
            raise ValidationException(detail="Cannot reset the password of a revoked link")

        bundle = await DocumentService.load_bundle(
            db, tenant.id, link.document_id, DocumentType(link.document_type)
        )
        tenant_id, link_id = tenant.id, link.id
        try:
            new_password, previous = await AccessLinkService.rotate_password(db, link)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                sanitize_log_message(
                    "Failed to store new link password",
                    TenantID=tenant_id,
                    LinkID=link_id,
                    Error=str(e)
                )
            )
            raise PasswordResetException(code=NEW_PASSWORD_FAILURE_CODES[channel]) from e

        if not bundle.patient.email:
            return new_password, False

        try:
            await EmailService.send_access_link_email(
                db,
                tenant,
                link,
                bundle,
                new_password,
                resolve_locale(tenant.timezone),
                failure_code=EMAIL_FAILURE_CODES[channel]
            )
        except EmailDeliveryException as e:
            logger.warning(
                sanitize_log_message(
                    "Restoring previous link password after notification failure",
                    TenantID=tenant.id,
                    LinkID=link.id,
                    Code=e.code
                )
            )
            await AccessLinkService.restore_password(db, link, previous)
            raise

        return new_password, True

    @staticmethod
    async def find_by_token(
        db: AsyncSession,
        access_token: str
    ) -> AccessLink:
        """
        Find an active link by token across all active tenants.

        Expired links are returned; the caller checks expiry.

        Raises:
            AccessLinkNotFoundException: If no active link matches
        """
        if not access_token:
            raise AccessLinkNotFoundException()

        result = await db.execute(
            select(AccessLink)
            .join(Tenant, Tenant.id == AccessLink.tenant_id)
            .where(
                AccessLink.access_token == access_token,
                AccessLink.active == True,
                Tenant.status == TenantStatus.ACTIVE.value
            )
        )
        link = result.scalar_one_or_none()
        if not link:
            raise AccessLinkNotFoundException()
        return link

    @staticmethod
    async def find_by_id(
        db: AsyncSession,
        tenant_id: int,
        link_id: str
    ) -> AccessLink:
        """
        Raises:
            ResourceNotFoundException: If the link does not belong to the tenant
        """
        result = await db.execute(
            select(AccessLink).where(
                AccessLink.id == link_id,
                AccessLink.tenant_id == tenant_id
            )
        )
        link = result.scalar_one_or_none()
        if not link:
            raise ResourceNotFoundException(detail="Access link not found")
        return link

    @staticmethod
    async def find_by_document(
        db: AsyncSession,
        tenant_id: int,
        document_id: str,
        document_type: Optional[DocumentType] = None
    ) -> List[AccessLink]:
        """Active links of a document, newest first."""
        query = select(AccessLink).where(
            AccessLink.tenant_id == tenant_id,
            AccessLink.document_id == document_id,
            AccessLink.active == True
        )
        if document_type is not None:
            query = query.where(AccessLink.document_type == document_type.value)

        result = await db.execute(query.order_by(AccessLink.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_links(
        db: AsyncSession,
        tenant_id: int,
        active: Optional[bool] = None,
        document_type: Optional[DocumentType] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None
    ) -> List[AccessLink]:
        """Links of a tenant with optional filters, newest first."""
        query = select(AccessLink).where(AccessLink.tenant_id == tenant_id)
        if active is not None:
            query = query.where(AccessLink.active == active)
        if document_type is not None:
            query = query.where(AccessLink.document_type == document_type.value)
        if created_from is not None:
            query = query.where(AccessLink.created_at >= ensure_utc(created_from))
        if created_to is not None:
            query = query.where(AccessLink.created_at <= ensure_utc(created_to))

        result = await db.execute(query.order_by(AccessLink.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def increment_views(db: AsyncSession, link: AccessLink) -> AccessLink:
        """Record a successful view with a single atomic UPDATE."""
        await db.execute(
            update(AccessLink)
            .where(AccessLink.id == link.id)
            .values(
                views_count=AccessLink.views_count + 1,
                last_viewed_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        await db.refresh(link)
        return link

    @staticmethod
    async def revoke(db: AsyncSession, link: AccessLink) -> AccessLink:
        """Deactivate a link. There is no way back."""
        link.active = False
        await db.commit()
        await db.refresh(link)

        logger.info(
            sanitize_log_message(
                "Access link revoked",
                TenantID=link.tenant_id,
                LinkID=link.id
            )
        )
        return link

    @staticmethod
    async def delete(db: AsyncSession, link: AccessLink) -> None:
        """Physically remove a link. Only used to undo a failed creation."""
        await db.delete(link)
        await db.commit()

    @staticmethod
    async def rotate_password(
        db: AsyncSession,
        link: AccessLink
    ) -> Tuple[str, PasswordState]:
        """
        Replace the password of a link. Content is left untouched.

        Returns:
            Tuple of (new plain password, previous password state)
        """
        previous = PasswordState(link.password_hash, link.password_encrypted)
        new_password = generate_link_password()

        link.password_hash = await AccessLinkService.hash_password(new_password)
        link.password_encrypted = encrypt_secret(new_password)
        await db.commit()
        await db.refresh(link)
        return new_password, previous

    @staticmethod
    async def restore_password(
        db: AsyncSession,
        link: AccessLink,
        previous: PasswordState
    ) -> AccessLink:
        link.password_hash = previous.password_hash
        link.password_encrypted = previous.password_encrypted
        await db.commit()
        await db.refresh(link)
        return link

    @staticmethod
    def get_decrypted_password(link: AccessLink) -> Optional[str]:
        """Current plain password for staff display, None when unavailable."""
        try:
            return decrypt_secret(link.password_encrypted)
        except ValueError:
            logger.warning(
                sanitize_log_message(
                    "Stored link password cannot be decrypted",
                    TenantID=link.tenant_id,
                    LinkID=link.id
                )
            )
            return None

    @staticmethod
    async def expire_links(db: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Deactivate every active link whose expiry has passed.

        Returns:
            Number of links deactivated
        """
        result = await db.execute(
            update(AccessLink)
            .where(
                AccessLink.active == True,
                AccessLink.expires_at.is_not(None),
                AccessLink.expires_at < (now or utcnow())
            )
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        expired = result.rowcount or 0
        if expired:
            logger.info(f"Deactivated {expired} expired access link(s)")
        return expired
