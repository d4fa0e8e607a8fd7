import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import BackgroundTasks
from docshare.models.audit_log import AuditLog, ActionType, UserType
from docshare.core.logging_utils import sanitize_log_message

logger = logging.getLogger(__name__)

AUDIT_STATUS_SUCCESS = "success"
AUDIT_STATUS_ERROR = "error"


class AuditService:
    """Service for the audit trail of link lifecycle and public access events."""

    @staticmethod
    async def log_action(
        db: AsyncSession,
        action_type: ActionType,
        user_type: UserType,
        user_id: Optional[int] = None,
        tenant_id: Optional[int] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_data: Optional[Dict[str, Any]] = None,
        response_data: Optional[Dict[str, Any]] = None,
        status: str = AUDIT_STATUS_SUCCESS,
        error_message: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> AuditLog:
        """
        Persist one audit entry.

        Args:
            db: Database session
            action_type: What happened
            user_type: api_key for staff calls, public for link viewers
            user_id: API key ID for staff calls
            tenant_id: Tenant owning the affected link
            resource_type: "access_link", "quote", "prevention", ...
            resource_id: ID of the affected resource
            request_data: Request payload; callers strip passwords first
            response_data: Summary of the outcome
            status: success or error
            error_message: Reason for an error entry
            request_id: Request ID for correlation with application logs

        Returns:
            Created AuditLog record
        """
        entry = AuditLog(
            action_type=action_type,
            user_type=user_type,
            user_id=user_id,
            tenant_id=tenant_id,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=ip_address,
            user_agent=user_agent,
            request_data=request_data,
            response_data=response_data,
            status=status,
            error_message=error_message,
            request_id=request_id
        )
        db.add(entry)
        await db.commit()
        await db.refresh(entry)

        message = sanitize_log_message(
            f"Audit: {action_type.value}",
            TenantID=tenant_id,
            Resource=f"{resource_type}:{resource_id}" if resource_type else None,
            Status=status,
            RequestID=request_id
        )
        if status == AUDIT_STATUS_ERROR:
            logger.warning(f"{message} | Error: {error_message}")
        else:
            logger.debug(message)

        return entry

    @staticmethod
    async def log_action_background(
        background_tasks: BackgroundTasks,
        db: AsyncSession,
        action_type: ActionType,
        user_type: UserType,
        **fields: Any
    ) -> None:
        """Schedule log_action to run after the response is sent."""
        background_tasks.add_task(
            AuditService.log_action,
            db=db,
            action_type=action_type,
            user_type=user_type,
            **fields
        )
