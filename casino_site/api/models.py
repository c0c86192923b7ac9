"""Pydantic v2 request/response models for the casino site API."""

from pydantic import BaseModel


class RevalidationResponse(BaseModel):
    """Response model for a successful POST /api/revalidate-sitemap."""

    revalidated: bool = True
    timestamp: str  # ISO 8601, UTC
    contentType: str


class WebhookErrorResponse(BaseModel):
    """Flat error body returned by the revalidation webhook."""

    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    webhook_configured: bool
    cached_sitemaps: list[str]
