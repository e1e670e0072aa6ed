"""
Per-endpoint fan-out and merge.

Each builder issues its independent upstream calls concurrently and assembles
the final payload. Optional pieces (artwork, episode lists, single spotlight
entries) degrade to empty values; the primary AniList lookup does not.
"""
import asyncio
import logging

import httpx

from anilist import SPOTLIGHT_QUERY, fetch_anizip, fetch_media, search_media
from config import RECENTLY_ADDED, UpstreamConfig
from episodes import build_stream_link, fetch_episodes_list, fetch_stream_servers, find_episode_id
from errors import NotFoundError, UpstreamError
from formatting import (
    cover_url,
    display_title,
    episode_number_from_title,
    extract_anizip_images,
    format_airing_info,
    format_season,
    format_status,
    sanitize_description,
)
from models import (
    CharacterItem,
    MediaCard,
    RelationItem,
    SearchResultItem,
    SpotlightItem,
    VoiceActor,
    parse_episode,
)

logger = logging.getLogger(__name__)


# ── Home ──────────────────────────────────────────────────────

async def build_spotlight_entry(client: httpx.AsyncClient, config: UpstreamConfig, anilist_id: int) -> dict | None:
    media, anizip = await asyncio.gather(
        fetch_media(client, config, anilist_id, query=SPOTLIGHT_QUERY),
        fetch_anizip(client, config, anilist_id),
    )
    if not media:
        return None

    banner, logo = extract_anizip_images(anizip, config.image_overrides.get(anilist_id))
    time_left, episode_count = format_airing_info(media)
    cover = cover_url(media)

    return SpotlightItem(
        id=media["id"],
        title=display_title(media.get("title")),
        logo=logo or cover,
        banner=banner or media.get("bannerImage") or cover,
        description=sanitize_description(media.get("description")),
        season=format_season(media.get("season"), media.get("seasonYear")),
        episode=episode_count,
        timeLeft=time_left,
        status=format_status(media.get("status")),
        type=media.get("format") or "TV",
    ).model_dump()


async def build_spotlight(client: httpx.AsyncClient, config: UpstreamConfig) -> list[dict]:
    """Settle every spotlight id; failures and empty entries are dropped, order is kept."""
    ids = list(config.spotlight_ids)
    results = await asyncio.gather(
        *(build_spotlight_entry(client, config, anilist_id) for anilist_id in ids),
        return_exceptions=True,
    )

    spotlight = []
    for anilist_id, result in zip(ids, results):
        if isinstance(result, BaseException):
            logger.error(f"[spotlight] Dropping {anilist_id}: {result!r}")
            continue
        if result is None:
            logger.warning(f"[spotlight] No media for {anilist_id}")
            continue
        spotlight.append(result)
    return spotlight


async def build_home(client: httpx.AsyncClient, config: UpstreamConfig) -> dict:
    spotlight = await build_spotlight(client, config)
    return {"spotlight": spotlight, "recently added": RECENTLY_ADDED}


# ── Detail ────────────────────────────────────────────────────

def media_card(media: dict) -> dict:
    return MediaCard(
        id=media["id"],
        title=display_title(media.get("title")),
        poster=cover_url(media),
        format=media.get("format") or "TV",
        status=format_status(media.get("status")),
        episodes=media.get("episodes"),
        averageScore=media.get("averageScore"),
        season=media.get("season"),
        seasonYear=media.get("seasonYear"),
    ).model_dump()


def attach_thumbnails(episodes_list: list[dict], streaming_episodes: list[dict]) -> list[dict]:
    """Copy AniList streaming-episode thumbnails onto the matching episode numbers."""
    numbered = []
    for stream_ep in streaming_episodes:
        number = episode_number_from_title(stream_ep.get("title"))
        if number is not None:
            numbered.append((number, stream_ep.get("thumbnail") or ""))

    merged = []
    for raw in episodes_list:
        episode = parse_episode(raw)
        ep_num = episode.numeric_number() if episode is not None else None
        thumbnail = ""
        if ep_num is not None:
            thumbnail = next((thumb for number, thumb in numbered if number == ep_num), "")
        merged.append({**raw, "thumbnail": thumbnail})
    return merged


def build_relations(media: dict) -> list[dict]:
    relations = []
    for edge in (media.get("relations") or {}).get("edges") or []:
        node = edge.get("node") or {}
        relations.append(RelationItem(
            relationType=edge.get("relationType"),
            id=node.get("id"),
            title=display_title(node.get("title")),
            poster=cover_url(node),
            format=node.get("format"),
            status=format_status(node.get("status")),
            episodes=node.get("episodes"),
            type=node.get("type"),
        ).model_dump())
    return relations


def build_characters(media: dict) -> list[dict]:
    characters = []
    for edge in (media.get("characters") or {}).get("edges") or []:
        node = edge.get("node") or {}
        voice_actors = [
            VoiceActor(
                id=va.get("id"),
                name=(va.get("name") or {}).get("userPreferred") or "",
                image=(va.get("image") or {}).get("large") or "",
            )
            for va in edge.get("voiceActors") or []
        ]
        characters.append(CharacterItem(
            role=edge.get("role"),
            id=node.get("id"),
            name=(node.get("name") or {}).get("userPreferred") or "",
            image=(node.get("image") or {}).get("large") or "",
            voiceActors=voice_actors,
        ).model_dump())
    return characters


async def build_anime_detail(client: httpx.AsyncClient, config: UpstreamConfig, anime_id: str) -> dict:
    try:
        anilist_id = int(anime_id)
    except ValueError:
        raise NotFoundError("Anime not found") from None

    media, episodes_list, anizip = await asyncio.gather(
        fetch_media(client, config, anilist_id),
        fetch_episodes_list(client, config, anime_id),
        fetch_anizip(client, config, anilist_id),
    )
    if not media:
        raise NotFoundError("Anime not found")

    banner, logo = extract_anizip_images(anizip, config.image_overrides.get(anilist_id))
    time_left, episode_count = format_airing_info(media)
    title = media.get("title") or {}
    cover = media.get("coverImage") or {}

    recommendations = [
        media_card(node["mediaRecommendation"])
        for node in (media.get("recommendations") or {}).get("nodes") or []
        if node.get("mediaRecommendation")
    ]

    data = {
        "id": media["id"],
        "title": display_title(title),
        "titleRomaji": title.get("romaji") or "",
        "titleNative": title.get("native") or "",
        "poster": cover.get("extraLarge") or "",
        "logo": logo or "",
        "color": cover.get("color") or "",
        "banner": banner or media.get("bannerImage") or cover.get("extraLarge") or "",
        "description": sanitize_description(media.get("description")),
        "season": format_season(media.get("season"), media.get("seasonYear")),
        "episode": episode_count,
        "totalEpisodes": media.get("episodes"),
        "duration": media.get("duration"),
        "timeLeft": time_left,
        "status": format_status(media.get("status")),
        "type": media.get("format") or "TV",
        "genres": media.get("genres") or [],
        "averageScore": media.get("averageScore"),
        "meanScore": media.get("meanScore"),
        "popularity": media.get("popularity"),
        "favourites": media.get("favourites"),
        "source": media.get("source"),
        "countryOfOrigin": media.get("countryOfOrigin"),
        "startDate": media.get("startDate"),
        "endDate": media.get("endDate"),
        "studios": [
            {"name": s.get("name"), "isAnimationStudio": s.get("isAnimationStudio")}
            for s in (media.get("studios") or {}).get("nodes") or []
        ],
        "streamingEpisodes": media.get("streamingEpisodes") or [],
        "trailer": media.get("trailer"),
        "synonyms": media.get("synonyms") or [],
        "tags": [{"name": t.get("name"), "rank": t.get("rank")} for t in (media.get("tags") or [])[:10]],
        "relations": build_relations(media),
        "characters": build_characters(media),
    }

    return {
        "success": True,
        "data": data,
        "episodes": attach_thumbnails(episodes_list, media.get("streamingEpisodes") or []),
        "recommendations": recommendations,
    }


# ── Search ────────────────────────────────────────────────────

async def run_search(client: httpx.AsyncClient, config: UpstreamConfig, query: str, page: int = 1, per_page: int = 20) -> dict:
    body = await search_media(client, config, query, page=page, per_page=per_page)
    if body.get("errors"):
        raise UpstreamError(body["errors"])

    page_data = (body.get("data") or {}).get("Page") or {}
    results = []
    for media in page_data.get("media") or []:
        card = media_card(media)
        results.append(SearchResultItem(**card, color=(media.get("coverImage") or {}).get("color") or "").model_dump())

    return {"success": True, "pageInfo": page_data.get("pageInfo"), "results": results}


# ── Streaming ─────────────────────────────────────────────────

async def resolve_stream(
    client: httpx.AsyncClient,
    config: UpstreamConfig,
    anime_id: str,
    ep: str = "1",
    server: str = "hd-1",
    audio_type: str = "sub",
) -> dict:
    # one episode-list fetch feeds both the lookup and the response
    episodes_list = await fetch_episodes_list(client, config, anime_id)
    episode_id = find_episode_id(episodes_list, ep)
    if not episode_id:
        raise NotFoundError("Stream link not found")

    stream_servers = await fetch_stream_servers(client, config, episode_id)
    stream_link = build_stream_link(config.stream_url, episode_id, server, audio_type)

    return {
        "success": True,
        "episodesList": episodes_list,
        "streamLink": stream_link,
        "streamServers": stream_servers,
    }
