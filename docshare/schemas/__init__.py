"""Pydantic schemas for request/response contracts."""
from docshare.schemas.public_access import (
    AccessRequest,
    PublicBranding,
    PublicContent,
    PublicContentResponse,
    DocumentActionResponse,
)
from docshare.schemas.access_link import (
    AccessLinkOptions,
    PublicQuoteCreateRequest,
    LandingPageCreateRequest,
)
from docshare.schemas.email_template import (
    EmailTemplateUpdateRequest,
    EmailTemplateResponse,
    EmailPreviewResponse,
)
from docshare.schemas.communication_settings import (
    CommunicationSettingsRequest,
    CommunicationSettingsResponse,
)

__all__ = [
    "AccessRequest",
    "PublicBranding",
    "PublicContent",
    "PublicContentResponse",
    "DocumentActionResponse",
    "AccessLinkOptions",
    "PublicQuoteCreateRequest",
    "LandingPageCreateRequest",
    "EmailTemplateUpdateRequest",
    "EmailTemplateResponse",
    "EmailPreviewResponse",
    "CommunicationSettingsRequest",
    "CommunicationSettingsResponse",
]
