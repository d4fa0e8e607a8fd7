from typing import Any, Dict, Optional
from pydantic import BaseModel


class EmailTemplateUpdateRequest(BaseModel):
    """Request schema for PUT /tq/email-templates/{document_type}."""
    subject: str
    body: str
    settings: Optional[Dict[str, Any]] = None


class EmailTemplateResponse(BaseModel):
    """Email template as shown in the settings screen."""
    document_type: str
    subject: str
    body: str
    settings: Dict[str, Any]
    is_default: bool = False


class EmailPreviewResponse(BaseModel):
    subject: str
    html: str
    text: str
