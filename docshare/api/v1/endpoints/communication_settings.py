import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from docshare.database import get_db
from docshare.schemas.communication_settings import (
    CommunicationSettingsRequest,
    CommunicationSettingsResponse,
)
from docshare.services.tenant_service import TenantService
from docshare.models.tenant import Tenant
from docshare.core.exceptions import ResourceNotFoundException
from docshare.core.logging_utils import sanitize_log_message
from docshare.api.deps import get_current_tenant

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=CommunicationSettingsResponse)
async def get_communication_settings(
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """SMTP settings of the tenant. The password is never returned."""
    row = await TenantService.get_communication_settings(db, tenant.id)
    if not row:
        raise ResourceNotFoundException(detail="Communication settings not configured for this tenant")
    return CommunicationSettingsResponse.model_validate(row)


@router.put("", response_model=CommunicationSettingsResponse)
async def update_communication_settings(
    payload: CommunicationSettingsRequest,
    tenant: Tenant = Depends(get_current_tenant),
    db: AsyncSession = Depends(get_db)
):
    """Create or replace the SMTP settings of the tenant."""
    row = await TenantService.upsert_communication_settings(
        db,
        tenant.id,
        smtp_host=payload.smtp_host,
        smtp_port=payload.smtp_port,
        smtp_secure=payload.smtp_secure,
        smtp_username=payload.smtp_username,
        smtp_password=payload.smtp_password,
        smtp_from_email=payload.smtp_from_email,
        smtp_from_name=payload.smtp_from_name,
        cc_emails=[str(address) for address in payload.cc_emails]
    )
    logger.info(
        sanitize_log_message(
            "Communication settings updated",
            TenantID=tenant.id,
            Host=row.smtp_host,
            Port=row.smtp_port
        )
    )
    return CommunicationSettingsResponse.model_validate(row)
