"""
REST HTTP client for the Treetracker messaging API.
"""

import logging
from typing import Any, Optional

import httpx

from treetracker_messaging.errors import MalformedResponseError, TransportError

DEFAULT_BASE_URL = "https://prod-k8s.treetracker.org"
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/",
            headers={"User-Agent": "treetracker-messaging/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if resp.status_code < 200 or resp.status_code >= 300:
            raise TransportError(f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response is not valid JSON: {e}")

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        logger.debug("GET %s %s", path, params or "")
        try:
            resp = await self._client.get(path.lstrip("/"), params=params)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path} failed: {e}") from e
        return self._decode(resp)

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        logger.debug("POST %s", path)
        try:
            resp = await self._client.post(
                path.lstrip("/"), json=body, headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"POST {path} failed: {e}") from e
        return self._decode(resp)

    async def close(self) -> None:
        await self._client.aclose()
