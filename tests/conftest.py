# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Environment is set before the app modules are imported, since main.py builds
# the application (and reads settings) at import time.
# =============================================================================

import json
import os

os.environ.setdefault("HIANIME_MAPPER", "http://mapper.test/")
os.environ.setdefault("STREAM_URL", "http://stream.test/")
os.environ.setdefault("ANILIST_URL", "http://anilist.test")
os.environ.setdefault("ANIZIP_URL", "http://anizip.test/mappings")
os.environ.setdefault("ENVIRONMENT", "development")

import httpx
import pytest
from fastapi.testclient import TestClient

from config import UpstreamConfig
from dependencies import get_http_client


# =============================================================================
# Fake upstream
# =============================================================================

class FakeUpstream:
    """
    MockTransport handler that dispatches on host.

    `media` maps AniList ids to Media records (an Exception value makes that id
    fail at the transport level). `anizip`, `mapper` and `stream` map ids/paths
    to JSON bodies. Every request is recorded in `calls`.
    """

    def __init__(self):
        self.media: dict = {}
        self.anilist_body: dict | None = None
        self.anizip: dict = {}
        self.mapper: dict = {}
        self.stream: dict = {}
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        host = request.url.host

        if host == "anilist.test":
            if self.anilist_body is not None:
                return httpx.Response(200, json=self.anilist_body)
            variables = json.loads(request.content)["variables"]
            media = self.media.get(variables.get("id"))
            if isinstance(media, Exception):
                raise httpx.ConnectError(str(media), request=request)
            return httpx.Response(200, json={"data": {"Media": media}})

        if host == "anizip.test":
            body = self.anizip.get(int(request.url.params["anilist_id"]))
            if body is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json=body)

        table = self.mapper if host == "mapper.test" else self.stream
        path = request.url.path
        body = table.get(path)
        if body is None:
            raise httpx.ConnectError(f"no route for {path}", request=request)
        return httpx.Response(200, json=body)

    def hosts(self) -> list[str]:
        return [call.url.host for call in self.calls]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def upstream():
    return UpstreamConfig(
        mapper_url="http://mapper.test",
        stream_url="http://stream.test",
        anilist_url="http://anilist.test",
        anizip_url="http://anizip.test/mappings",
        fetch_timeout=2.0,
        fetch_retries=3,
    )


@pytest.fixture
def fake():
    return FakeUpstream()


@pytest.fixture
def make_client():
    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _make


@pytest.fixture
def api(fake):
    """TestClient whose outbound calls all land on the `fake` upstream."""
    from main import app

    mock_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    app.dependency_overrides[get_http_client] = lambda: mock_client
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def media_record():
    return {
        "id": 21,
        "title": {"english": "One Piece", "romaji": "ONE PIECE", "native": "ワンピース"},
        "bannerImage": "https://img.test/banner.jpg",
        "coverImage": {"extraLarge": "https://img.test/cover.jpg", "large": None, "color": "#e4a15d"},
        "description": "Gold Roger was known as the <b>Pirate King</b>.<br>",
        "season": "FALL",
        "seasonYear": 1999,
        "episodes": None,
        "duration": 24,
        "status": "RELEASING",
        "format": "TV",
        "nextAiringEpisode": {"timeUntilAiring": 97200, "episode": 1120},
        "genres": ["Action", "Adventure"],
        "streamingEpisodes": [
            {"title": "Episode 2 - The Great Swordsman", "thumbnail": "https://img.test/ep2.jpg"},
            {"title": "Episode 1 - I'm Luffy!", "thumbnail": "https://img.test/ep1.jpg"},
        ],
        "tags": [{"name": f"tag{i}", "rank": 90 - i} for i in range(12)],
        "studios": {"nodes": [{"name": "Toei Animation", "isAnimationStudio": True}]},
        "relations": {"edges": [{
            "relationType": "SOURCE",
            "node": {"id": 30013, "title": {"romaji": "ONE PIECE", "english": None}, "coverImage": {"extraLarge": "https://img.test/manga.jpg"}, "format": "MANGA", "status": "RELEASING", "episodes": None, "type": "MANGA"},
        }]},
        "characters": {"edges": [{
            "role": "MAIN",
            "node": {"id": 40, "name": {"userPreferred": "Monkey D. Luffy"}, "image": {"large": "https://img.test/luffy.jpg"}},
            "voiceActors": [{"id": 95011, "name": {"userPreferred": "Mayumi Tanaka"}, "image": {"large": "https://img.test/tanaka.jpg"}}],
        }]},
        "recommendations": {"nodes": [
            {"mediaRecommendation": {"id": 20, "title": {"english": "Naruto", "romaji": "NARUTO"}, "coverImage": {"extraLarge": "https://img.test/naruto.jpg"}, "format": "TV", "status": "FINISHED", "episodes": 220, "averageScore": 79, "season": "FALL", "seasonYear": 2002}},
            {"mediaRecommendation": None},
        ]},
    }
