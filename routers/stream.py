import logging

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from aggregator import resolve_stream
from config import UpstreamConfig
from dependencies import get_http_client, get_upstream
from episodes import fetch_episodes_list
from errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Stream"])


@router.get("/stream/{anime_id}")
async def get_stream(
    anime_id: str,
    ep: str = Query(default="1", description="Episode number"),
    server: str = Query(default="hd-1", description="Stream server id"),
    type: str = Query(default="sub", description="Audio type: sub or dub"),
    client: httpx.AsyncClient = Depends(get_http_client),
    upstream: UpstreamConfig = Depends(get_upstream),
):
    """Resolve the embed link and server list for one episode."""
    try:
        return await resolve_stream(client, upstream, anime_id, ep=ep, server=server, audio_type=type)
    except (NotFoundError, UpstreamError):
        raise
    except Exception as e:
        logger.error(f"[/api/stream] Error for {anime_id}: {e!r}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to fetch stream data"})


@router.get("/episodes/{anime_id}")
async def get_episodes(
    anime_id: str,
    client: httpx.AsyncClient = Depends(get_http_client),
    upstream: UpstreamConfig = Depends(get_upstream),
):
    try:
        episodes_list = await fetch_episodes_list(client, upstream, anime_id)
        return {"success": True, "episodesList": episodes_list}
    except Exception as e:
        logger.error(f"[/api/episodes] Error for {anime_id}: {e!r}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to fetch episodes"})
