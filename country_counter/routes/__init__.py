"""API routes."""

from fastapi import APIRouter

from country_counter.routes import api, page

api_router = APIRouter()

# Visit page (records a visit on every request)
api_router.include_router(page.router, tags=["page"])

# Read-only JSON views of the scoreboard and map points
api_router.include_router(api.router, prefix="/v1", tags=["visits"])
