"""
Normalizers that turn raw AniList / ani.zip records into the response shape.

Everything here is pure: one record in, plain values out.
"""
import re
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>?")
_EPISODE_TITLE_RE = re.compile(r"(?:Episode|Ep)\s*(\d+(\.\d+)?)", re.IGNORECASE)


def format_airing_info(media: dict) -> tuple[str, str | None]:
    """
    Returns (time_left, episode_count).

    While a title is airing the countdown is rendered as "<days>d <hours>h" and
    the upcoming episode number is reported as the current count. Otherwise the
    total episode count is used ("NA" when unknown) with an empty countdown.
    """
    episodes = media.get("episodes")
    episode_count = str(episodes) if episodes is not None else "NA"
    time_left = ""

    next_airing = media.get("nextAiringEpisode")
    if next_airing:
        seconds = int(next_airing.get("timeUntilAiring") or 0)
        days = seconds // 86400
        hours = (seconds % 86400) // 3600
        time_left = f"{days}d {hours}h"
        upcoming = next_airing.get("episode")
        episode_count = str(upcoming) if upcoming is not None else None

    return time_left, episode_count


def format_status(status: str | None) -> str:
    if status == "FINISHED":
        return "Completed"
    if not status:
        return "Unknown"
    return status[0] + status[1:].lower().replace("_", " ")


def format_season(season: str | None, year: int | None) -> str:
    if season and year:
        return f"{season[0] + season[1:].lower()} {year}"
    return "Unknown"


def extract_anizip_images(anizip_data: Any, override: dict | None = None) -> tuple[str, str]:
    """Pick (banner, logo) from an ani.zip mapping, a manual override wins outright."""
    if override:
        return override.get("banner", ""), override.get("logo", "")

    banner = ""
    logo = ""
    images = anizip_data.get("images") if isinstance(anizip_data, dict) else None
    for img in images or []:
        cover_type = img.get("coverType")
        if cover_type == "Fanart" and not banner:
            banner = img.get("url") or ""
        if cover_type == "Clearlogo" and not logo:
            logo = img.get("url") or ""
        if banner and logo:
            break
    return banner, logo


def sanitize_description(text: str | None) -> str:
    if not text:
        return ""
    return _TAG_RE.sub("", text)


def display_title(title: dict | None) -> str:
    title = title or {}
    return title.get("english") or title.get("romaji") or ""


def cover_url(media: dict) -> str:
    return (media.get("coverImage") or {}).get("extraLarge") or ""


def episode_number_from_title(title: str | None) -> float | None:
    """Parse the number out of titles like "Episode 12 - The Culling Game"."""
    if not title:
        return None
    match = _EPISODE_TITLE_RE.search(title)
    return float(match.group(1)) if match else None
