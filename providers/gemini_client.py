"""Thin async HTTP client for the Gemini REST API (generativelanguage.googleapis.com)."""

import json
import logging
from collections.abc import AsyncIterator

import httpx

from config import settings
from jobs.errors import RemoteCallFailure

logger = logging.getLogger(__name__)


class GeminiClient:
    """Shared transport for the Gemini text, Imagen and Veo providers.

    A new ``httpx.AsyncClient`` is opened per call. Pass ``transport`` to route
    calls somewhere other than the network (e.g. ``httpx.MockTransport``).

    Usage:
        client = GeminiClient(api_key="...")
        data = await client.post("models/gemini-2.5-flash:generateContent", body)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.api_key
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.transport = transport

    def _get_headers(self) -> dict:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def post(self, path: str, body: dict) -> dict:
        try:
            async with self._client() as client:
                response = await client.post(self._url(path), headers=self._get_headers(), json=body)
                self._raise_for_status(response)
                return response.json()
        except httpx.ConnectError as e:
            raise RemoteCallFailure(f"Cannot connect to Gemini API at {self.base_url}") from e
        except httpx.TimeoutException as e:
            raise RemoteCallFailure(f"Gemini API request timed out after {self.timeout}s") from e

    async def get(self, path: str) -> dict:
        try:
            async with self._client() as client:
                response = await client.get(self._url(path), headers=self._get_headers())
                self._raise_for_status(response)
                return response.json()
        except httpx.ConnectError as e:
            raise RemoteCallFailure(f"Cannot connect to Gemini API at {self.base_url}") from e
        except httpx.TimeoutException as e:
            raise RemoteCallFailure(f"Gemini API request timed out after {self.timeout}s") from e

    async def stream(self, path: str, body: dict) -> AsyncIterator[dict]:
        """POST with ``alt=sse`` and yield each server-sent JSON chunk in order."""
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    self._url(path),
                    headers=self._get_headers(),
                    params={"alt": "sse"},
                    json=body,
                ) as response:
                    if response.is_error:
                        await response.aread()
                    self._raise_for_status(response)
                    async for line in response.aiter_lines():
                        if not line.startswith("data:"):
                            continue
                        payload = line[len("data:"):].strip()
                        if payload:
                            yield json.loads(payload)
        except httpx.ConnectError as e:
            raise RemoteCallFailure(f"Cannot connect to Gemini API at {self.base_url}") from e
        except httpx.TimeoutException as e:
            raise RemoteCallFailure(f"Gemini API request timed out after {self.timeout}s") from e

    async def download(self, uri: str) -> bytes:
        """Fetch a generated file. The API key is appended as the ``key`` query parameter."""
        try:
            async with self._client() as client:
                response = await client.get(uri, params={"key": self.api_key}, follow_redirects=True)
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"Failed to download video: {e}") from e
        if response.is_error:
            logger.error("Download of %s failed with %d", uri, response.status_code)
            raise RemoteCallFailure(f"Failed to download video: {response.reason_phrase}")
        return response.content

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_error:
            error_msg = f"Gemini API error {response.status_code}: {response.text}"
            logger.error("%s", error_msg)
            raise RemoteCallFailure(error_msg)
