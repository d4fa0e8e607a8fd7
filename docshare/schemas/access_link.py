from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from docshare.models.document import DocumentType


class AccessLinkOptions(BaseModel):
    """Fields shared by both link creation endpoints."""
    template_id: Optional[str] = Field(default=None, alias="templateId")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    password: Optional[str] = Field(default=None, min_length=4, max_length=64)
    auto_generate_password: bool = Field(default=True, alias="autoGeneratePassword")

    class Config:
        populate_by_name = True


class PublicQuoteCreateRequest(AccessLinkOptions):
    """Request schema for POST /tq/public-quotes."""
    quote_id: str = Field(..., alias="quoteId", min_length=1)


class LandingPageCreateRequest(AccessLinkOptions):
    """Request schema for POST /tq/landing-pages."""
    document_id: str = Field(..., alias="documentId", min_length=1)
    document_type: DocumentType = Field(default=DocumentType.QUOTE, alias="documentType")
