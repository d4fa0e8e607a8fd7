from fastapi import APIRouter
from docshare.api.v1.endpoints import (
    public_access,
    public_quotes,
    landing_pages,
    email_templates,
    communication_settings,
)

api_router = APIRouter()

# Public viewer channels
api_router.include_router(public_access.public_quote_router, prefix="/pq", tags=["public-quotes"])
api_router.include_router(public_access.landing_page_router, prefix="/lp", tags=["landing-pages"])

# Staff (X-API-Key)
api_router.include_router(public_quotes.router, prefix="/tq/public-quotes", tags=["staff"])
api_router.include_router(landing_pages.router, prefix="/tq/landing-pages", tags=["staff"])
api_router.include_router(email_templates.router, prefix="/tq/email-templates", tags=["staff"])
api_router.include_router(communication_settings.router, prefix="/tq/communication-settings", tags=["staff"])
