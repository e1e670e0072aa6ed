import logging

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from aggregator import build_anime_detail, build_home, run_search
from config import UpstreamConfig
from dependencies import get_http_client, get_upstream
from errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Anime"])


@router.get("/home")
async def home(
    client: httpx.AsyncClient = Depends(get_http_client),
    upstream: UpstreamConfig = Depends(get_upstream),
):
    """Spotlight carousel plus the curated "recently added" shelf."""
    return await build_home(client, upstream)


@router.get("/anime/{anime_id}")
async def anime_detail(
    anime_id: str,
    client: httpx.AsyncClient = Depends(get_http_client),
    upstream: UpstreamConfig = Depends(get_upstream),
):
    """
    Full AniList record merged with the episode list and ani.zip artwork.
    Only the AniList lookup is required; the other two degrade to empty values.
    """
    try:
        return await build_anime_detail(client, upstream, anime_id)
    except (NotFoundError, UpstreamError):
        raise
    except Exception as e:
        logger.error(f"[/anime/{anime_id}] Error: {e!r}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to fetch anime data"})


@router.get("/search/{query}")
async def search(
    query: str,
    page: int = Query(default=1),
    perPage: int = Query(default=20),
    client: httpx.AsyncClient = Depends(get_http_client),
    upstream: UpstreamConfig = Depends(get_upstream),
):
    try:
        return await run_search(client, upstream, query, page=page, per_page=perPage)
    except (NotFoundError, UpstreamError):
        raise
    except Exception as e:
        logger.error(f"[/search/{query}] Error: {e!r}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to search anime"})
