import logging
from typing import Any

import httpx

from config import UpstreamConfig
from fetcher import fetch_data
from models import EpisodeListRequest, EpisodeSource, StreamTarget, parse_episode

logger = logging.getLogger(__name__)


def episode_list_request(config: UpstreamConfig, anime_id: str) -> EpisodeListRequest:
    slug = config.remaps.get(str(anime_id))
    if slug:
        return EpisodeListRequest(source=EpisodeSource.STREAM_SLUG, url=f"{config.stream_url}/episodes/{slug}")
    return EpisodeListRequest(source=EpisodeSource.MAPPER_INFO, url=f"{config.mapper_url}/anime/info/{anime_id}")


async def fetch_episodes_list(client: httpx.AsyncClient, config: UpstreamConfig, anime_id: str) -> list[dict]:
    """Episode list for an AniList id. Never raises; any failure yields []."""
    try:
        request = episode_list_request(config, anime_id)
        logger.info(f"[fetch_episodes_list] {request.source.value} fetch: {request.url}")
        res = await fetch_data(client, request.url, max_attempts=config.fetch_retries, timeout=config.fetch_timeout)
        return request.extract(res.json())
    except Exception as e:
        logger.error(f"[fetch_episodes_list] Error for {anime_id}: {e!r}", exc_info=True)
        return []


def find_episode_id(episodes_list: list[dict], ep_num: Any = "1") -> str | None:
    for raw in episodes_list:
        episode = parse_episode(raw)
        if episode is None:
            logger.warning(f"[find_episode_id] Skipping malformed entry: {raw!r}")
            continue
        if not episode.matches(ep_num):
            continue
        if episode.id:
            logger.info(f"[find_episode_id] Found Episode {ep_num}: {episode.id}")
            return episode.identifier
        break
    logger.warning(f"[find_episode_id] Episode {ep_num} not found")
    return None


def build_stream_link(stream_url: str, episode_id: str, server_id: str = "hd-1", audio_type: str = "sub") -> str:
    return StreamTarget(episode_id=episode_id, server_id=server_id, audio_type=audio_type).link(stream_url)


async def fetch_stream_servers(client: httpx.AsyncClient, config: UpstreamConfig, episode_id: str) -> Any:
    try:
        res = await fetch_data(
            client,
            f"{config.stream_url}/servers?id={episode_id}",
            max_attempts=config.fetch_retries,
            timeout=config.fetch_timeout,
        )
        return res.json()
    except Exception as e:
        logger.error(f"[fetch_stream_servers] Error for {episode_id}: {e!r}", exc_info=True)
        return None
