import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


def normalize_episode_number(value: Any) -> float | str | None:
    """Common form for episode numbers: finite numerics become floats, the rest stripped strings."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return text
    return number if math.isfinite(number) else text


class EpisodeSource(str, Enum):
    # remapped ids: {STREAM_URL}/episodes/{slug}, payload["data"] is the list
    STREAM_SLUG = "stream_slug"
    # default: {HIANIME_MAPPER}/anime/info/{id}, payload["data"]["episodesList"]
    MAPPER_INFO = "mapper_info"


class EpisodeListRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: EpisodeSource
    url: str

    def extract(self, payload: Any) -> list[dict]:
        if not isinstance(payload, dict):
            return []
        if self.source is EpisodeSource.STREAM_SLUG:
            episodes = payload.get("data")
        elif self.source is EpisodeSource.MAPPER_INFO:
            data = payload.get("data")
            episodes = data.get("episodesList") if isinstance(data, dict) else None
        else:
            raise ValueError(f"Unhandled episode source: {self.source}")
        if not isinstance(episodes, list):
            return []
        return [ep for ep in episodes if isinstance(ep, dict)]


class Episode(BaseModel):
    """One upstream episode entry; unknown fields are kept as-is."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    number: Any = None
    episodeNumber: Any = None

    @property
    def identifier(self) -> str | None:
        return canonical_episode_id(str(self.id)) if self.id else None

    def matches(self, ep_num: Any) -> bool:
        wanted = normalize_episode_number(ep_num)
        if wanted is None:
            return False
        return wanted in (
            normalize_episode_number(self.episodeNumber),
            normalize_episode_number(self.number),
        )

    def numeric_number(self) -> float | None:
        # detail view prefers "number", then "episodeNumber"
        for raw in (self.number, self.episodeNumber):
            value = normalize_episode_number(raw)
            if value is not None:
                return value if isinstance(value, float) else None
        return None


def parse_episode(raw: Any) -> Episode | None:
    """Episode view of one upstream entry, or None when the entry is malformed."""
    try:
        return Episode.model_validate(raw)
    except ValidationError:
        return None


def canonical_episode_id(episode_id: str) -> str:
    """Stream-service ids use '::'; the mapper hands out 'slug?ep=N'."""
    if "::" in episode_id:
        return episode_id
    return episode_id.replace("?", "::", 1)


class StreamTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    episode_id: str
    server_id: str = "hd-1"
    audio_type: str = "sub"

    def link(self, stream_url: str) -> str:
        return f"{stream_url}/embed/{self.server_id}/{self.episode_id}/{self.audio_type}"


# ── Response shapes ───────────────────────────────────────────

class SpotlightItem(BaseModel):
    id: int
    title: str
    logo: str
    banner: str
    description: str
    season: str
    episode: str | None
    timeLeft: str
    status: str
    type: str


class MediaCard(BaseModel):
    id: int
    title: str
    poster: str
    format: str | None = None
    status: str
    episodes: int | None = None
    averageScore: int | None = None
    season: str | None = None
    seasonYear: int | None = None


class SearchResultItem(MediaCard):
    color: str = ""


class RelationItem(BaseModel):
    relationType: str | None = None
    id: int | None = None
    title: str
    poster: str
    format: str | None = None
    status: str
    episodes: int | None = None
    type: str | None = None


class VoiceActor(BaseModel):
    id: int | None = None
    name: str = ""
    image: str = ""


class CharacterItem(BaseModel):
    role: str | None = None
    id: int | None = None
    name: str = ""
    image: str = ""
    voiceActors: list[VoiceActor] = Field(default_factory=list)
