import uuid
from typing import Optional, Dict, Any
from fastapi import Depends, Request, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from docshare.database import get_db
from docshare.models.api_key import ApiKey
from docshare.models.tenant import Tenant
from docshare.models.audit_log import ActionType, UserType
from docshare.core.api_key import validate_api_key
from docshare.core.exceptions import TenantInactiveException
from docshare.middleware.rate_limit import get_client_ip
from docshare.services.audit_service import AuditService, AUDIT_STATUS_SUCCESS
from docshare.services.tenant_service import TenantService


async def get_current_tenant(
    api_key: ApiKey = Depends(validate_api_key),
    db: AsyncSession = Depends(get_db)
) -> Tenant:
    """
    Resolve the tenant bound to the X-API-Key header.
    Dependency for every staff (/tq) endpoint.

    Raises:
        HTTPException: 401 if the key is invalid, 403 if the tenant is inactive
    """
    tenant = await TenantService.get_tenant(db, api_key.tenant_id)
    if not tenant or not tenant.is_active:
        raise TenantInactiveException()
    return tenant


class AuditContext:
    """Request-scoped audit logging context with request ID."""

    def __init__(
        self,
        request: Request,
        background_tasks: BackgroundTasks,
        db: AsyncSession,
        user_id: Optional[int] = None,
        user_type: Optional[UserType] = None,
        tenant_id: Optional[int] = None
    ):
        """
        Args:
            request: FastAPI Request object
            background_tasks: FastAPI BackgroundTasks instance
            db: Database session
            user_id: API key ID for staff calls
            user_type: User type (API_KEY, PUBLIC or SYSTEM)
            tenant_id: Tenant the request acts on, when known up front
        """
        if not hasattr(request.state, "request_id"):
            request.state.request_id = str(uuid.uuid4())

        self.request_id = request.state.request_id
        self.request = request
        self.background_tasks = background_tasks
        self.db = db
        self.user_id = user_id
        self.user_type = user_type or UserType.SYSTEM
        self.tenant_id = tenant_id
        self.ip_address = get_client_ip(request)
        self.user_agent = request.headers.get("user-agent")

    def _context_fields(self, tenant_id: Optional[int]) -> Dict[str, Any]:
        return {
            "user_type": self.user_type,
            "user_id": self.user_id,
            "tenant_id": tenant_id if tenant_id is not None else self.tenant_id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "request_id": self.request_id,
        }

    async def log_action(
        self,
        action_type: ActionType,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        request_data: Optional[Dict[str, Any]] = None,
        response_data: Optional[Dict[str, Any]] = None,
        status: str = AUDIT_STATUS_SUCCESS,
        error_message: Optional[str] = None,
        tenant_id: Optional[int] = None
    ) -> None:
        """
        Queue an audit entry for after the response.

        Public requests only learn their tenant once the link is resolved,
        so tenant_id can be passed per call.
        """
        await AuditService.log_action_background(
            background_tasks=self.background_tasks,
            db=self.db,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=resource_id,
            request_data=request_data,
            response_data=response_data,
            status=status,
            error_message=error_message,
            **self._context_fields(tenant_id)
        )

    async def log_action_now(
        self,
        action_type: ActionType,
        tenant_id: Optional[int] = None,
        **fields: Any
    ) -> None:
        """
        Write an audit entry before returning.

        Background tasks do not run when the request ends in an error
        response, so denials are recorded inline.
        """
        await AuditService.log_action(
            db=self.db,
            action_type=action_type,
            **self._context_fields(tenant_id),
            **fields
        )


async def get_public_audit_context(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
) -> AuditContext:
    """Audit context for anonymous viewers of public links."""
    return AuditContext(
        request=request,
        background_tasks=background_tasks,
        db=db,
        user_type=UserType.PUBLIC
    )


async def get_audit_context_with_api_key(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(validate_api_key)
) -> AuditContext:
    """
    Audit context for staff endpoints authenticated with an API key.

    Usage:
        @router.post("/endpoint")
        async def endpoint(audit_context: AuditContext = Depends(get_audit_context_with_api_key)):
            await audit_context.log_action(...)
    """
    return AuditContext(
        request=request,
        background_tasks=background_tasks,
        db=db,
        user_id=api_key.id,
        user_type=UserType.API_KEY,
        tenant_id=api_key.tenant_id
    )
