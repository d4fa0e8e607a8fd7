from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from docshare.models.tenant import Tenant, TenantBranding, TenantCommunicationSettings
from docshare.core.security import encrypt_secret

# Colors used by the public document viewer when a tenant has no branding row
PUBLIC_BRANDING_DEFAULTS = {
    "primaryColor": "#3B82F6",
    "secondaryColor": "#1E40AF",
    "tertiaryColor": "#60A5FA",
}


class TenantService:
    """Service for tenant lookups, branding and communication settings."""

    @staticmethod
    async def get_tenant(db: AsyncSession, tenant_id: int) -> Optional[Tenant]:
        result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_branding(db: AsyncSession, tenant_id: int) -> Optional[TenantBranding]:
        result = await db.execute(
            select(TenantBranding).where(TenantBranding.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_communication_settings(
        db: AsyncSession,
        tenant_id: int
    ) -> Optional[TenantCommunicationSettings]:
        result = await db.execute(
            select(TenantCommunicationSettings).where(
                TenantCommunicationSettings.tenant_id == tenant_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_public_branding(db: AsyncSession, tenant: Tenant) -> Dict[str, Any]:
        """
        Branding block returned with public content.

        A missing branding row degrades to default colors and the tenant
        name rather than failing the request.
        """
        branding = await TenantService.get_branding(db, tenant.id)
        if not branding:
            return {
                **PUBLIC_BRANDING_DEFAULTS,
                "logo": None,
                "socialLinks": {},
                "email": None,
                "phone": None,
                "address": None,
                "companyName": tenant.name,
            }

        return {
            "primaryColor": branding.primary_color or PUBLIC_BRANDING_DEFAULTS["primaryColor"],
            "secondaryColor": branding.secondary_color or PUBLIC_BRANDING_DEFAULTS["secondaryColor"],
            "tertiaryColor": branding.tertiary_color or PUBLIC_BRANDING_DEFAULTS["tertiaryColor"],
            "logo": branding.logo_url,
            "socialLinks": branding.social_links or {},
            "email": branding.email,
            "phone": branding.phone,
            "address": branding.address,
            "companyName": branding.company_name or tenant.name,
        }

    @staticmethod
    async def get_email_branding(db: AsyncSession, tenant: Tenant) -> Dict[str, Any]:
        """Branding values used by the email renderer (unset colors stay None)."""
        branding = await TenantService.get_branding(db, tenant.id)
        if not branding:
            return {"company_name": tenant.name}
        return {
            "primary_color": branding.primary_color,
            "secondary_color": branding.secondary_color,
            "tertiary_color": branding.tertiary_color,
            "logo_url": branding.logo_url,
            "company_name": branding.company_name or tenant.name,
            "email": branding.email,
            "phone": branding.phone,
            "address": branding.address,
            "social_links": branding.social_links or {},
        }

    @staticmethod
    async def upsert_communication_settings(
        db: AsyncSession,
        tenant_id: int,
        smtp_host: str,
        smtp_port: int,
        smtp_secure: bool,
        smtp_username: str,
        smtp_password: str,
        smtp_from_email: str,
        smtp_from_name: str,
        cc_emails: Optional[List[str]] = None
    ) -> TenantCommunicationSettings:
        """Create or replace the SMTP settings of a tenant. The password is stored encrypted."""
        row = await TenantService.get_communication_settings(db, tenant_id)
        if row is None:
            row = TenantCommunicationSettings(tenant_id=tenant_id)
            db.add(row)

        row.smtp_host = smtp_host
        row.smtp_port = smtp_port
        row.smtp_secure = smtp_secure
        row.smtp_username = smtp_username
        row.smtp_password_encrypted = encrypt_secret(smtp_password)
        row.smtp_from_email = smtp_from_email
        row.smtp_from_name = smtp_from_name
        row.cc_emails = list(cc_emails or [])

        await db.commit()
        await db.refresh(row)
        return row
