"""
HTTP client for the Study Assistant API.
"""

import logging
from typing import Optional

import httpx

from app.api.models.search import SearchResultSet

logger = logging.getLogger(__name__)


class StudyClientError(Exception):
    """The API answered with ``success: false`` or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StudyClient:
    """Async client for the endpoints the search box needs."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "StudyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get(self, path: str, params: Optional[dict] = None) -> dict:
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise StudyClientError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or not body.get("success", False):
            message = body.get("message") or f"HTTP {response.status_code}"
            raise StudyClientError(message, status_code=response.status_code)
        return body

    async def search(self, query: str) -> SearchResultSet:
        """
        Unified search.

        Raises:
            StudyClientError: On validation errors, server errors or transport failures.
        """
        body = await self._get("/api/search", params={"q": query})
        return SearchResultSet.model_validate(body["data"])
