import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from docshare.api.v1.router import api_router
from docshare.config import settings
from docshare.database import close_db
from docshare.core.exceptions import (
    ValidationException,
    InvalidPasswordException,
    AccessLinkNotFoundException,
    DocumentNotFoundException,
    ResourceNotFoundException,
    DocumentStateConflictException,
    UnsupportedDocumentActionException,
    TenantInactiveException,
    EmailDeliveryException,
    PasswordResetException,
)
from docshare.core.logging_config import setup_logging, cleanup_old_logs
from docshare.core.logging_utils import sanitize_log_message, mask_url_path
from docshare.middleware.logging_middleware import LoggingMiddleware
from docshare.middleware.rate_limit import setup_rate_limiting, get_client_ip
from docshare.middleware.security import setup_security_middleware

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
)


@app.on_event("startup")
async def startup_event():
    """Initialize logging and cleanup old logs on application startup."""
    setup_logging()
    cleanup_old_logs()
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    await close_db()


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "X-API-Key", "X-Request-ID", "Accept", "Origin"],
)

# Request size limit + security headers
setup_security_middleware(app, max_request_size=settings.MAX_REQUEST_SIZE)

if settings.LOG_ENABLE_REQUEST_LOGGING:
    app.add_middleware(LoggingMiddleware)

setup_rate_limiting(app)

# Public (/pq, /lp) and staff (/tq) paths are served from the root
app.include_router(api_router)


def _request_context(request: Request) -> dict:
    return {
        "Path": mask_url_path(request.url.path),
        "Method": request.method,
        "IP": get_client_ip(request),
    }


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.info(
        sanitize_log_message("Request validation failed", **_request_context(request), Errors=len(errors))
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "errors": errors}
    )


@app.exception_handler(ValidationException)
async def validation_handler(request: Request, exc: ValidationException):
    logger.info(
        sanitize_log_message("Validation error", **_request_context(request), Detail=exc.detail)
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(InvalidPasswordException)
async def invalid_password_handler(request: Request, exc: InvalidPasswordException):
    logger.warning(
        sanitize_log_message("Invalid access link password", **_request_context(request))
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(AccessLinkNotFoundException)
async def access_link_not_found_handler(request: Request, exc: AccessLinkNotFoundException):
    logger.warning(
        sanitize_log_message("Access link not found or expired", **_request_context(request))
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(DocumentNotFoundException)
async def document_not_found_handler(request: Request, exc: DocumentNotFoundException):
    logger.warning(
        sanitize_log_message("Document not found", **_request_context(request), Detail=exc.detail)
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(ResourceNotFoundException)
async def resource_not_found_handler(request: Request, exc: ResourceNotFoundException):
    logger.info(
        sanitize_log_message("Resource not found", **_request_context(request), Detail=exc.detail)
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(DocumentStateConflictException)
async def document_state_conflict_handler(request: Request, exc: DocumentStateConflictException):
    logger.info(
        sanitize_log_message("Document state conflict", **_request_context(request), Detail=exc.detail)
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(UnsupportedDocumentActionException)
async def unsupported_action_handler(request: Request, exc: UnsupportedDocumentActionException):
    logger.info(
        sanitize_log_message("Unsupported document action", **_request_context(request), Detail=exc.detail)
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(TenantInactiveException)
async def tenant_inactive_handler(request: Request, exc: TenantInactiveException):
    logger.warning(
        sanitize_log_message("Request for inactive tenant", **_request_context(request))
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(EmailDeliveryException)
async def email_delivery_handler(request: Request, exc: EmailDeliveryException):
    logger.error(
        sanitize_log_message(
            "Email delivery failed",
            **_request_context(request),
            Code=exc.code,
            Detail=exc.detail
        )
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code}
    )


@app.exception_handler(PasswordResetException)
async def password_reset_handler(request: Request, exc: PasswordResetException):
    logger.error(
        sanitize_log_message(
            "Password reset failed",
            **_request_context(request),
            Code=exc.code,
            Detail=exc.detail
        )
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code}
    )


# Generic exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(
        sanitize_log_message(
            f"Unhandled exception: {type(exc).__name__}",
            **_request_context(request),
            ExceptionType=type(exc).__name__,
            ExceptionMessage=str(exc)
        )
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error" if settings.ENVIRONMENT == "production" else str(exc)
        }
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.VERSION}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": f"{settings.API_V1_STR}/docs"
    }
