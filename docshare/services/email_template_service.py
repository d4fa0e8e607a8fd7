import copy
import logging
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from docshare.models.document import DocumentType
from docshare.models.email_template import EmailTemplate, REQUIRED_PLACEHOLDERS
from docshare.core.exceptions import ValidationException
from docshare.core.locale import DEFAULT_LOCALE

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: Dict[str, Dict[str, Dict[str, str]]] = {
    DocumentType.QUOTE.value: {
        "pt-BR": {
            "subject": "Cotação $quoteNumber$ - $clinicName$",
            "body": (
                "Olá $patientName$,\n\n"
                "Sua cotação $quoteNumber$ está disponível para visualização online.\n\n"
                "$PUBLIC_LINK$\n\n"
                "$PASSWORD_BLOCK$"
            ),
            "ctaButtonText": "Ver Cotação",
        },
        "en-US": {
            "subject": "Quote $quoteNumber$ - $clinicName$",
            "body": (
                "Hello $patientName$,\n\n"
                "Your quote $quoteNumber$ is now available for online viewing.\n\n"
                "$PUBLIC_LINK$\n\n"
                "$PASSWORD_BLOCK$"
            ),
            "ctaButtonText": "View Quote",
        },
    },
    DocumentType.PREVENTION.value: {
        "pt-BR": {
            "subject": "Relatório $preventionNumber$ - $clinicName$",
            "body": (
                "Olá $patientName$,\n\n"
                "Seu relatório $preventionNumber$ está disponível para visualização online.\n\n"
                "$PUBLIC_LINK$\n\n"
                "$PASSWORD_BLOCK$"
            ),
            "ctaButtonText": "Ver Relatório",
        },
        "en-US": {
            "subject": "Report $preventionNumber$ - $clinicName$",
            "body": (
                "Hello $patientName$,\n\n"
                "Your report $preventionNumber$ is now available for online viewing.\n\n"
                "$PUBLIC_LINK$\n\n"
                "$PASSWORD_BLOCK$"
            ),
            "ctaButtonText": "View Report",
        },
    },
}

DEFAULT_SETTINGS: Dict[str, Any] = {
    "ctaButtonText": "",
    "showLogo": True,
    "showSocialLinks": False,
    "showAddress": False,
    "showPhone": False,
    "address": "",
    "phone": "",
    "socialLinks": {
        "facebook": "",
        "instagram": "",
        "linkedin": "",
        "website": "",
    },
    "headerColor": "primary-gradient",
    "headerTextColor": "white",
    "buttonColor": "primary-gradient",
    "buttonTextColor": "white",
}


def get_default_template(document_type: DocumentType, locale: str = DEFAULT_LOCALE) -> Dict[str, Any]:
    """Default subject/body/settings for a document type and locale."""
    by_locale = DEFAULT_TEMPLATES[document_type.value]
    defaults = by_locale.get(locale, by_locale["en-US"])
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    settings["ctaButtonText"] = defaults["ctaButtonText"]
    return {
        "subject": defaults["subject"],
        "body": defaults["body"],
        "settings": settings,
    }


def validate_template(subject: Any, body: Any) -> None:
    """
    Raises:
        ValidationException: If subject/body are missing or the body lacks a
            mandatory placeholder
    """
    if not isinstance(subject, str) or not subject.strip():
        raise ValidationException(detail="Subject is required")
    if not isinstance(body, str) or not body.strip():
        raise ValidationException(detail="Body is required")

    missing = [placeholder for placeholder in REQUIRED_PLACEHOLDERS if placeholder not in body]
    if missing:
        raise ValidationException(
            detail=f"Body must contain the placeholders: {', '.join(missing)}"
        )


class EmailTemplateService:
    """Service for per-tenant email templates."""

    @staticmethod
    async def get_template(
        db: AsyncSession,
        tenant_id: int,
        document_type: DocumentType
    ) -> Optional[EmailTemplate]:
        result = await db.execute(
            select(EmailTemplate).where(
                EmailTemplate.tenant_id == tenant_id,
                EmailTemplate.document_type == document_type.value
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_template(
        db: AsyncSession,
        tenant_id: int,
        document_type: DocumentType,
        subject: str,
        body: str,
        settings: Optional[Dict[str, Any]] = None
    ) -> EmailTemplate:
        """
        Create or replace the template of a document type.

        Settings are merged over the defaults so partial updates keep
        the remaining keys.

        Raises:
            ValidationException: If the template is incomplete
        """
        validate_template(subject, body)

        merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
        merged_settings.update(settings or {})

        template = await EmailTemplateService.get_template(db, tenant_id, document_type)
        if template:
            template.subject = subject
            template.body = body
            template.settings = merged_settings
        else:
            template = EmailTemplate(
                tenant_id=tenant_id,
                document_type=document_type.value,
                subject=subject,
                body=body,
                settings=merged_settings,
            )
            db.add(template)

        await db.commit()
        await db.refresh(template)
        return template

    @staticmethod
    async def seed_defaults(
        db: AsyncSession,
        tenant_id: int,
        locale: str = DEFAULT_LOCALE
    ) -> int:
        """
        Create the default templates a tenant is missing.

        Returns:
            Number of templates created
        """
        created = 0
        for document_type in DocumentType:
            if await EmailTemplateService.get_template(db, tenant_id, document_type):
                continue
            defaults = get_default_template(document_type, locale)
            db.add(EmailTemplate(
                tenant_id=tenant_id,
                document_type=document_type.value,
                subject=defaults["subject"],
                body=defaults["body"],
                settings=defaults["settings"],
            ))
            created += 1

        if created:
            await db.commit()
            logger.info(f"Seeded {created} default email template(s) for tenant {tenant_id}")
        return created

    @staticmethod
    def to_render_dict(template: EmailTemplate) -> Dict[str, Any]:
        return {
            "subject": template.subject,
            "body": template.body,
            "settings": template.settings or {},
        }
