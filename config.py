"""
Runtime configuration for the AniStream backend.

Environment values are read once through pydantic-settings; the upstream
endpoints and the static lookup tables are then frozen into an UpstreamConfig
that lives on app.state for the lifetime of the process.
"""
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ── Static tables ─────────────────────────────────────────────
# AniList ID -> HiAnime slug for titles the mapper resolves incorrectly
CUSTOM_REMAPS = {
    "172463": "jujutsu-kaisen-the-culling-game-part-1-20401",
    "131573": "jujutsu-kaisen-0-movie-17763",
}

SPOTLIGHT_IDS = (195322, 166613, 182255, 21, 195515, 172463, 99750)

# Hand-picked artwork for titles ani.zip has no usable images for
IMAGE_OVERRIDES = {
    99750: {
        "logo": "https://image.tmdb.org/t/p/original/iOGhQzUidBzOj6pxKp7pBZkw2ta.png",
        "banner": "https://artworks.thetvdb.com/banners/movies/16877/backgrounds/16877.jpg",
    },
}

_POSTER_PROXY = "https://serveproxy.com/?url=https://s4.anilist.co/file/anilistcdn/media/anime/cover/large"

RECENTLY_ADDED = [
    {"id": 183984, "title": "The Case Book of Arne", "poster": f"{_POSTER_PROXY}/bx183984-uq5scAXrhEdx.jpg", "type": "TV", "episodes": 12, "status": "Releasing"},
    {"id": 183661, "title": "Isekai Office Worker", "poster": f"{_POSTER_PROXY}/bx183661-3muPFi4LtHmK.jpg", "type": "TV", "episodes": 12, "status": "Releasing"},
    {"id": 177679, "title": "The Darwin Incident", "poster": f"{_POSTER_PROXY}/bx177679-BgsgE0fQk3qN.jpg", "type": "TV", "episodes": 13, "status": "Releasing"},
    {"id": 187942, "title": "Tune In to the Midnight Heart", "poster": f"{_POSTER_PROXY}/bx187942-c2cZvunJGfiE.jpg", "type": "TV", "episodes": 12, "status": "Releasing"},
    {"id": 194318, "title": "Yoroi-Shinden Samurai Johnny", "poster": f"{_POSTER_PROXY}/bx194318-V3STmm4wutVQ.jpg", "type": "TV", "episodes": 12, "status": "Releasing"},
    {"id": 176370, "title": "'Tis Time for \"Torture,\" Princess Season 2", "poster": f"{_POSTER_PROXY}/bx176370-hz2H4TUeyGgt.png", "type": "TV", "episodes": 12, "status": "Releasing"},
    {"id": 185646, "title": "Koupen-chan", "poster": f"{_POSTER_PROXY}/bx185646-2eGmsnaSHiLC.jpg", "type": "TV Short", "episodes": 47, "status": "Releasing"},
    {"id": 189565, "title": "You Can't Be in a Real Harem", "poster": f"{_POSTER_PROXY}/bx189565-OHhadYSsd0Bg.jpg", "type": "TV", "episodes": 12, "status": "Releasing"},
    {"id": 195515, "title": "There Was a Cute Girl in the Hero's Party", "poster": f"{_POSTER_PROXY}/bx195515-p1nD71Hmr4ly.jpg", "type": "TV", "episodes": 12, "status": "Releasing"},
]


def clean_base_url(url: str | None) -> str:
    """Trim whitespace and trailing slashes; an unset URL becomes ''."""
    if not url:
        return ""
    return url.strip().rstrip("/")


class Settings(BaseSettings):
    HIANIME_MAPPER: str = Field(default="", description="Base URL of the HiAnime mapper service")
    STREAM_URL: str = Field(default="", description="Base URL of the episode/stream service")
    ANILIST_URL: str = Field(default="https://graphql.anilist.co")
    ANIZIP_URL: str = Field(default="https://api.ani.zip/mappings")

    PORT: int = Field(default=3000, ge=1, le=65535)
    ENVIRONMENT: Literal["development", "production"] = "production"
    LOG_LEVEL: str = "INFO"

    FETCH_TIMEOUT: float = Field(default=10.0, gt=0)
    FETCH_RETRIES: int = Field(default=3, ge=1)

    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


class UpstreamConfig(BaseModel):
    """Read-only view of everything the aggregators need to reach upstream."""

    model_config = ConfigDict(frozen=True)

    mapper_url: str
    stream_url: str
    anilist_url: str
    anizip_url: str
    fetch_timeout: float = 10.0
    fetch_retries: int = 3
    remaps: dict[str, str] = Field(default_factory=lambda: dict(CUSTOM_REMAPS))
    spotlight_ids: tuple[int, ...] = SPOTLIGHT_IDS
    image_overrides: dict[int, dict[str, str]] = Field(default_factory=lambda: dict(IMAGE_OVERRIDES))

    @classmethod
    def from_settings(cls, settings: Settings) -> "UpstreamConfig":
        return cls(
            mapper_url=clean_base_url(settings.HIANIME_MAPPER),
            stream_url=clean_base_url(settings.STREAM_URL),
            anilist_url=clean_base_url(settings.ANILIST_URL),
            anizip_url=clean_base_url(settings.ANIZIP_URL),
            fetch_timeout=settings.FETCH_TIMEOUT,
            fetch_retries=settings.FETCH_RETRIES,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
