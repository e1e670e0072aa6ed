from typing import Any


class AnimeApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}


class FetchError(AnimeApiError):
    """Transport failure, timeout or exhausted retries against an upstream."""

    status_code = 502

    def __init__(self, url: str, message: str = "Failed to fetch after multiple retries", cause: Exception | None = None):
        super().__init__(message)
        self.url = url
        self.__cause__ = cause


class NotFoundError(AnimeApiError):
    status_code = 404


class UpstreamError(AnimeApiError):
    """The remote answered with a structured error list instead of data."""

    status_code = 400

    def __init__(self, errors: list[Any]):
        super().__init__("Upstream returned errors")
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "errors": self.errors}
