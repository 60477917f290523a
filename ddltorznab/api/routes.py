from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from typing import List
from loguru import logger

from ddltorznab.core.config import settings
from ddltorznab.services.resolver import LinkResolution, LinkResolver

router = APIRouter()

# --- Models ---

class UnlockRequest(BaseModel):
    links: List[str]

class UnlockResponse(BaseModel):
    results: List[LinkResolution]

def get_resolver(request: Request) -> LinkResolver:
    return request.app.state.resolver

# --- Endpoints ---

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.get("/info")
async def info(resolver: LinkResolver = Depends(get_resolver)):
    cache_stats = await resolver.fallback.get_cache_stats()
    alldebrid_enabled = resolver.debrid.is_configured
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "description": "Link unlocking for DDL Torznab indexers",
        "alldebridEnabled": alldebrid_enabled,
        "alldebridPremium": await resolver.debrid.check_status() if alldebrid_enabled else False,
        "dlprotectCache": cache_stats.model_dump() if cache_stats else None,
        "endpoints": {
            "health": "/health",
            "info": "/info",
            "unlock": "/unlock?url=... | POST /unlock {links: [...]}",
        },
    }

@router.get("/unlock", response_model=LinkResolution)
async def unlock_one(
    url: str = Query(..., min_length=1),
    resolver: LinkResolver = Depends(get_resolver),
):
    """
    Best link available for a single URL. Never fails: worst case the
    (cleaned) input comes back with status "passthrough".
    """
    return await resolver.unlock_link(url)

@router.post("/unlock", response_model=UnlockResponse)
async def unlock_many(
    body: UnlockRequest,
    resolver: LinkResolver = Depends(get_resolver),
):
    logger.info(f"Unlocking {len(body.links)} links")
    results = await resolver.unlock_links(body.links)
    return UnlockResponse(results=results)
