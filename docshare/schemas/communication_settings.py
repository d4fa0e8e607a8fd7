from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field


class CommunicationSettingsRequest(BaseModel):
    """Request schema for PUT /tq/communication-settings."""
    smtp_host: str = Field(..., min_length=1)
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_secure: bool = True
    smtp_username: str = Field(..., min_length=1)
    smtp_password: str = Field(..., min_length=1)
    smtp_from_email: EmailStr
    smtp_from_name: str = Field(..., min_length=1)
    cc_emails: List[EmailStr] = Field(default_factory=list)


class CommunicationSettingsResponse(BaseModel):
    """SMTP settings without the password."""
    smtp_host: str
    smtp_port: int
    smtp_secure: bool
    smtp_username: str
    smtp_from_email: str
    smtp_from_name: str
    cc_emails: Optional[List[str]] = None
    has_password: bool = True

    class Config:
        from_attributes = True
