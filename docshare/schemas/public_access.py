from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class AccessRequest(BaseModel):
    """Request body for every public link endpoint."""
    password: str = Field(..., min_length=1, max_length=128)


class PublicBranding(BaseModel):
    """Tenant branding returned alongside public content."""
    primaryColor: str
    secondaryColor: str
    tertiaryColor: str
    logo: Optional[str] = None
    socialLinks: Dict[str, Any] = Field(default_factory=dict)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    companyName: Optional[str] = None


class PublicContent(BaseModel):
    content: Dict[str, Any]
    branding: PublicBranding


class PublicContentResponse(BaseModel):
    """Response schema for POST /pq/{token} and /lp/{token}."""
    data: PublicContent


class DocumentActionResponse(BaseModel):
    """Response schema for approve / mark-viewed."""
    data: Dict[str, Any]
    meta: Dict[str, Any]
