import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from docshare.config import settings
from docshare.models.access_link import AccessLink
from docshare.models.document import DocumentType
from docshare.models.email_log import EmailLog, EmailStatus
from docshare.models.tenant import Tenant, TenantCommunicationSettings
from docshare.core.exceptions import EmailDeliveryException, EmailTemplateNotFoundException
from docshare.core.logging_utils import sanitize_log_message
from docshare.services.document_service import DocumentBundle
from docshare.services.email_renderer import RenderedEmail, render_email
from docshare.services.email_template_service import EmailTemplateService
from docshare.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

SMTP_NOT_CONFIGURED_MESSAGE = "Communication settings not configured for this tenant"


@dataclass
class SmtpConfig:
    """Connection parameters resolved from tenant communication settings."""
    host: str
    port: int
    secure: bool
    username: str
    password: str
    from_header: str
    cc: List[str]

    @classmethod
    def from_settings(cls, row: TenantCommunicationSettings) -> "SmtpConfig":
        return cls(
            host=row.smtp_host,
            port=row.smtp_port or 587,
            secure=bool(row.smtp_secure),
            username=row.smtp_username,
            password=row.get_smtp_password(),
            from_header=row.from_header,
            cc=[address for address in (row.cc_emails or []) if address],
        )


def build_message(config: SmtpConfig, to: str, email: RenderedEmail) -> EmailMessage:
    """Multipart message with a plain-text body and an HTML alternative."""
    msg = EmailMessage()
    msg["From"] = config.from_header
    msg["To"] = to
    if config.cc:
        msg["Cc"] = ", ".join(config.cc)
    msg["Subject"] = email.subject
    msg.set_content(email.text or "")
    msg.add_alternative(email.html, subtype="html")
    return msg


def deliver(config: SmtpConfig, message: EmailMessage) -> None:
    """
    Blocking SMTP send. Run through a threadpool from async code.

    Port 465 uses implicit TLS; other ports upgrade with STARTTLS when the
    tenant marked the connection as secure.
    """
    context = ssl.create_default_context()
    if config.port == 465:
        with smtplib.SMTP_SSL(config.host, config.port, timeout=settings.SMTP_TIMEOUT, context=context) as s:
            s.login(config.username, config.password)
            s.send_message(message)
        return

    with smtplib.SMTP(config.host, config.port, timeout=settings.SMTP_TIMEOUT) as s:
        s.ehlo()
        if config.secure:
            s.starttls(context=context)
            s.ehlo()
        s.login(config.username, config.password)
        s.send_message(message)


class EmailService:
    """Service for sending tenant-branded notification emails."""

    @staticmethod
    async def send_email(
        db: AsyncSession,
        tenant_id: int,
        to: str,
        email: RenderedEmail
    ) -> None:
        """
        Send a rendered email through the tenant's SMTP server.

        Raises:
            EmailDeliveryException: SMTP_NOT_CONFIGURED when the tenant has no
                communication settings
            smtplib.SMTPException, OSError: On transport failures
        """
        row = await TenantService.get_communication_settings(db, tenant_id)
        if not row:
            raise EmailDeliveryException(
                detail=SMTP_NOT_CONFIGURED_MESSAGE,
                code=EmailDeliveryException.SMTP_NOT_CONFIGURED
            )

        config = SmtpConfig.from_settings(row)
        message = build_message(config, to, email)
        await run_in_threadpool(deliver, config, message)

        logger.info(
            sanitize_log_message(
                "Email sent",
                TenantID=tenant_id,
                Email=to,
                Subject=email.subject
            )
        )

    @staticmethod
    async def _log_email(
        db: AsyncSession,
        link: AccessLink,
        recipient: str,
        subject: str,
        status: EmailStatus,
        error_message: Optional[str] = None
    ) -> None:
        db.add(EmailLog(
            tenant_id=link.tenant_id,
            document_type=link.document_type,
            document_id=link.document_id,
            access_link_id=link.id,
            recipient=recipient,
            subject=subject,
            status=status.value,
            error_message=error_message,
        ))
        await db.commit()

    @staticmethod
    async def send_access_link_email(
        db: AsyncSession,
        tenant: Tenant,
        link: AccessLink,
        bundle: DocumentBundle,
        password: Optional[str],
        locale: str,
        failure_code: str = EmailDeliveryException.LANDING_PAGE_EMAIL_FAILED
    ) -> None:
        """
        Notify the patient that a document is available.

        Every attempt is recorded in email_logs.

        Args:
            db: Database session
            tenant: Owning tenant
            link: The access link being announced
            bundle: Document and patient the link was created from
            password: Plain password to include, None for no password box
            locale: Tenant locale
            failure_code: Code reported for any failure other than a missing
                SMTP configuration; depends on the route that shares the link

        Raises:
            EmailDeliveryException: With SMTP_NOT_CONFIGURED, or failure_code
                for any other error
        """
        recipient = bundle.patient.email
        subject = ""

        try:
            template = await EmailTemplateService.get_template(
                db, tenant.id, DocumentType(link.document_type)
            )
            if not template:
                raise EmailTemplateNotFoundException(link.document_type)

            branding = await TenantService.get_email_branding(db, tenant)
            patient_name = " ".join(
                part for part in (bundle.patient.first_name, bundle.patient.last_name) if part
            )
            number = bundle.document.number
            variables = {
                "patientName": patient_name,
                "documentNumber": number,
                "quoteNumber": number if link.document_type == DocumentType.QUOTE.value else "",
                "preventionNumber": number if link.document_type == DocumentType.PREVENTION.value else "",
                "clinicName": branding.get("company_name") or tenant.name,
                "publicLink": link.public_url,
                "password": password or "",
            }
            rendered = render_email(
                EmailTemplateService.to_render_dict(template), branding, variables, locale
            )
            subject = rendered.subject

            await EmailService.send_email(db, tenant.id, recipient, rendered)
        except EmailDeliveryException as e:
            if not e.code:
                e.code = failure_code
            await EmailService._handle_failure(db, link, recipient, subject, str(e.detail))
            raise
        except (EmailTemplateNotFoundException, smtplib.SMTPException, OSError, ValueError) as e:
            await EmailService._handle_failure(db, link, recipient, subject, str(e))
            raise EmailDeliveryException(
                detail=f"Failed to send email: {e}",
                code=failure_code
            ) from e

        await EmailService._log_email(db, link, recipient, subject, EmailStatus.SENT)

    @staticmethod
    async def _handle_failure(
        db: AsyncSession,
        link: AccessLink,
        recipient: str,
        subject: str,
        error_message: str
    ) -> None:
        logger.error(
            sanitize_log_message(
                "Access link email failed",
                TenantID=link.tenant_id,
                LinkID=link.id,
                DocumentType=link.document_type,
                Error=error_message
            )
        )
        await EmailService._log_email(
            db, link, recipient, subject, EmailStatus.FAILED, error_message=error_message
        )
