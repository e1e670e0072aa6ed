"""
AniStream Python Backend
Home feed, anime detail, search and stream resolution aggregated from AniList
(metadata), ani.zip (artwork) and a HiAnime mapper/stream service (episodes).
Run: uvicorn main:app --reload --port 3000
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, UpstreamConfig, get_settings
from errors import AnimeApiError
from fetcher import build_http_client
from routers import anime, stream

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.http_client = build_http_client()
    logger.info(f"[Startup] mapper={app.state.upstream.mapper_url or '-'} stream={app.state.upstream.stream_url or '-'}")
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        logger.info("[Shutdown] HTTP client closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="AniStream API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.upstream = UpstreamConfig.from_settings(settings)

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AnimeApiError)
    async def anime_api_error_handler(request: Request, exc: AnimeApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc!r}", exc_info=exc)
        content = {"error": "Internal Server Error"}
        if settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # ── Health ────────────────────────────────────────────────
    @app.get("/")
    async def root():
        return {"message": "Welcome to the AniStream API", "status": "ok"}

    app.include_router(stream.router)
    app.include_router(anime.router)
    return app


configure_logging(get_settings())
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=get_settings().PORT)
