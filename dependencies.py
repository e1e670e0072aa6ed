import httpx
from fastapi import Request

from config import UpstreamConfig


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_upstream(request: Request) -> UpstreamConfig:
    return request.app.state.upstream
