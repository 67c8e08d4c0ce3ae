"""
Health check API endpoints.

Routes: GET /health

Dependencies: course_assistant.api.deps
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from course_assistant.api.deps import ServiceCache, get_service_cache
from course_assistant.boundary.crawler import RelayCrawlerClient


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
    crawler_alive: bool


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check(cache: ServiceCache = Depends(get_service_cache)) -> HealthResponse:
    """Server health plus a ping of the background crawl host."""
    crawler = RelayCrawlerClient(cache.relay, timeout=cache.settings.ingestion.crawler_request_timeout_seconds)
    alive = await crawler.ping()
    return HealthResponse(
        status="healthy" if alive else "degraded",
        message="Server Healthy" if alive else "Crawler not reachable",
        crawler_alive=alive,
    )
