"""HTTP transport for the TowerOps API.

Performs one JSON request per call. Connection-level failures (no HTTP
response at all) are retried here with exponential backoff; HTTP status
codes are passed through untouched for the resource client to interpret.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .. import __version__
from ..config.settings import ProviderConfig
from ..errors import TransportError
from ..utils.connection import with_retry
from ..utils.logging_config import timed

logger = logging.getLogger(__name__)


@dataclass
class RawResponse:
    """Status code and undecoded body of an HTTP exchange."""
    status_code: int
    content: bytes = b""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class HttpTransport:
    """Async HTTP transport bound to one base URL and credential."""

    def __init__(
        self,
        config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Provider configuration (token, base URL, retry policy)
            http_client: Pre-built client, e.g. one using httpx.MockTransport
        """
        self.config = config
        self.base_url = config.base_url
        self._token = config.require_token()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            verify=config.verify_ssl,
        )
        self._send_with_retry = with_retry(
            max_attempts=config.retries,
            min_wait=config.retry_min_wait,
            max_wait=config.retry_max_wait,
        )(self._send)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"towerops-reconciler/{__version__}",
        }

    @timed("http", target_arg=1)
    async def do_request(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
    ) -> RawResponse:
        """
        Send a single request.

        Args:
            method: HTTP method
            path: Path below the base URL, e.g. /api/v1/sites
            body: JSON-serializable request body

        Returns:
            RawResponse with the status code and body bytes

        Raises:
            TransportError: If no response was received after all retries
        """
        content = json.dumps(body).encode("utf-8") if body is not None else None
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = await self._send_with_retry(method, url, content)
        except httpx.TransportError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        logger.debug(f"{method} {url} -> {response.status_code}")
        return RawResponse(status_code=response.status_code, content=response.content)

    async def _send(self, method: str, url: str, content: Optional[bytes]) -> httpx.Response:
        return await self._http.request(method, url, content=content, headers=self.headers)

    async def close(self) -> None:
        """Close the underlying connection pool if this transport created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False
