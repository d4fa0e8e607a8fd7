#!/usr/bin/env python3
"""
Create a tenant with branding and the default email templates.

Usage:
    python scripts/provision_tenant.py --name "Clínica Sorriso" --timezone America/Sao_Paulo
    python scripts/provision_tenant.py --name "Bondi Dental" --timezone Australia/Sydney --primary-color "#0F766E"
"""

import asyncio
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError
from docshare.database import AsyncSessionLocal, init_db
from docshare.models.tenant import Tenant, TenantBranding, TenantStatus
from docshare.core.locale import resolve_locale
from docshare.services.email_template_service import EmailTemplateService


async def provision_tenant(name: str, timezone: str = None, primary_color: str = None) -> tuple[Tenant, int]:
    """
    Returns:
        Tuple of (tenant, number of email templates seeded)
    """
    async with AsyncSessionLocal() as session:
        tenant = Tenant(name=name, timezone=timezone, status=TenantStatus.ACTIVE.value)
        session.add(tenant)
        await session.flush()

        session.add(TenantBranding(
            tenant_id=tenant.id,
            company_name=name,
            primary_color=primary_color
        ))
        await session.commit()
        await session.refresh(tenant)

        seeded = await EmailTemplateService.seed_defaults(
            session, tenant.id, resolve_locale(tenant.timezone)
        )
        return tenant, seeded


async def main():
    parser = argparse.ArgumentParser(description="Provision a tenant")
    parser.add_argument("--name", required=True, help="Clinic name")
    parser.add_argument("--timezone", default=None, help="IANA timezone, drives the locale")
    parser.add_argument("--primary-color", default=None, help="Brand color, e.g. #3B82F6")
    args = parser.parse_args()

    await init_db()

    try:
        tenant, seeded = await provision_tenant(args.name, args.timezone, args.primary_color)
    except SQLAlchemyError as e:
        print(f"Error provisioning tenant: {str(e)}", file=sys.stderr)
        sys.exit(1)

    print(f"Tenant {tenant.id} created: {tenant.name}")
    print(f"Locale: {resolve_locale(tenant.timezone)}")
    print(f"Email templates seeded: {seeded}")
    print(f"Next: python scripts/create_api_key.py --tenant-id {tenant.id} --name \"Back office\"")


if __name__ == "__main__":
    asyncio.run(main())
