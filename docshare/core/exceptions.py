from typing import Optional
from fastapi import HTTPException, status


class ValidationException(HTTPException):
    """Exception raised when a request fails validation."""

    def __init__(self, detail: str = "Validation error"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class InvalidPasswordException(HTTPException):
    """Exception raised when an access link password does not match."""

    def __init__(self, detail: str = "Invalid password"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail
        )


class AccessLinkNotFoundException(HTTPException):
    """
    Exception raised when an access link cannot be served.

    Absent, revoked and expired links all map here with the same detail
    so a public caller cannot tell them apart.
    """

    def __init__(self, detail: str = "Link not found or has expired"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class DocumentNotFoundException(HTTPException):
    """Exception raised when the source document of a link does not exist."""

    def __init__(self, detail: str = "Document not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class ResourceNotFoundException(HTTPException):
    """Exception raised when a tenant-scoped resource does not exist."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class DocumentStateConflictException(HTTPException):
    """Exception raised when the document status forbids the requested transition."""

    def __init__(self, detail: str = "Document state does not allow this action"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class UnsupportedDocumentActionException(HTTPException):
    """Exception raised when an action is called for the wrong document type."""

    def __init__(self, detail: str = "This action is not available for this document type"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class TenantInactiveException(HTTPException):
    """Exception raised when the authenticated tenant is not active."""

    def __init__(self, detail: str = "Tenant is not active"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class EmailTemplateNotFoundException(Exception):
    """Raised when a tenant has no email template for a document type."""

    def __init__(self, document_type: str):
        self.document_type = document_type
        super().__init__(f"Email template not found for document type '{document_type}'")


class EmailDeliveryException(HTTPException):
    """
    Exception raised when a notification email cannot be sent.

    Carries a stable ``code`` so clients can tell a missing SMTP
    configuration apart from a failed delivery.
    """

    SMTP_NOT_CONFIGURED = "SMTP_NOT_CONFIGURED"
    PUBLIC_QUOTE_EMAIL_FAILED = "PUBLIC_QUOTE_EMAIL_FAILED"
    LANDING_PAGE_EMAIL_FAILED = "LANDING_PAGE_EMAIL_FAILED"

    def __init__(self, detail: str = "Failed to send email", code: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )
        self.code = code


class PasswordResetException(HTTPException):
    """Exception raised when a link password could not be rotated."""

    PUBLIC_QUOTE_NEW_PASSWORD_FAILED = "PUBLIC_QUOTE_NEW_PASSWORD_FAILED"
    LANDING_PAGE_NEW_PASSWORD_FAILED = "LANDING_PAGE_NEW_PASSWORD_FAILED"

    def __init__(self, detail: str = "Failed to generate new password", code: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )
        self.code = code
