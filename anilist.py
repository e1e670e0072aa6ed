"""
AniList GraphQL and ani.zip lookups.

Query strings are kept verbatim next to the calls that use them so the selected
fields stay in sync with the normalizers in formatting.py.
"""
import logging
from typing import Any

import httpx

from config import UpstreamConfig
from fetcher import fetch_data

logger = logging.getLogger(__name__)

SPOTLIGHT_QUERY = """
query ($id: Int) {
  Media(id: $id, type: ANIME) {
    id
    title { english romaji }
    bannerImage
    coverImage { extraLarge }
    description
    season
    seasonYear
    episodes
    status
    format
    nextAiringEpisode { timeUntilAiring episode }
  }
}
"""

DETAIL_QUERY = """
query ($id: Int) {
  Media(id: $id, type: ANIME) {
    id
    title { romaji english native }
    coverImage { extraLarge large color }
    bannerImage
    description
    season
    seasonYear
    episodes
    duration
    nextAiringEpisode { timeUntilAiring episode }
    status
    format
    genres
    averageScore
    meanScore
    popularity
    favourites
    source
    countryOfOrigin
    startDate { year month day }
    endDate { year month day }
    studios { nodes { name isAnimationStudio } }
    streamingEpisodes { title thumbnail url site }
    trailer { id site }
    synonyms
    tags { name rank }
    relations {
      edges {
        relationType
        node {
          id
          title { romaji english }
          coverImage { extraLarge }
          format
          status
          episodes
          type
        }
      }
    }
    characters(sort: [ROLE, RELEVANCE, ID], perPage: 25) {
      edges {
        role
        node { id name { userPreferred } image { large } }
        voiceActors(language: JAPANESE, sort: [RELEVANCE, ID]) {
          id
          name { userPreferred }
          image { large }
        }
      }
    }
    recommendations(sort: RATING_DESC, perPage: 12) {
      nodes {
        mediaRecommendation {
          id
          title { romaji english }
          coverImage { extraLarge }
          bannerImage
          format
          status
          episodes
          averageScore
          season
          seasonYear
        }
      }
    }
  }
}
"""

SEARCH_QUERY = """
query ($search: String, $page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    pageInfo { total currentPage lastPage hasNextPage perPage }
    media(search: $search, type: ANIME, sort: [POPULARITY_DESC, SCORE_DESC]) {
      id
      title { romaji english native }
      coverImage { extraLarge color }
      format
      status
      episodes
      averageScore
      season
      seasonYear
    }
  }
}
"""


async def query_anilist(client: httpx.AsyncClient, config: UpstreamConfig, query: str, variables: dict) -> dict:
    res = await fetch_data(
        client,
        config.anilist_url,
        method="POST",
        json={"query": query, "variables": variables},
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        max_attempts=config.fetch_retries,
        timeout=config.fetch_timeout,
    )
    body = res.json()
    return body if isinstance(body, dict) else {}


async def fetch_media(client: httpx.AsyncClient, config: UpstreamConfig, anilist_id: int, query: str = DETAIL_QUERY) -> dict | None:
    """The Media record for an id, or None when AniList has nothing for it."""
    body = await query_anilist(client, config, query, {"id": anilist_id})
    return (body.get("data") or {}).get("Media")


async def search_media(client: httpx.AsyncClient, config: UpstreamConfig, search: str, page: int = 1, per_page: int = 20) -> dict:
    return await query_anilist(client, config, SEARCH_QUERY, {"search": search, "page": page, "perPage": per_page})


async def fetch_anizip(client: httpx.AsyncClient, config: UpstreamConfig, anilist_id: int) -> Any:
    """ani.zip mapping for the id; None on any failure since artwork is optional."""
    try:
        res = await fetch_data(
            client,
            config.anizip_url,
            params={"anilist_id": anilist_id},
            max_attempts=config.fetch_retries,
            timeout=config.fetch_timeout,
        )
        return res.json()
    except Exception as e:
        logger.error(f"[fetch_anizip] Error for {anilist_id}: {e!r}")
        return None
