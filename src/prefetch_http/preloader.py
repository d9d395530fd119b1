"""HTTP resource primer.

This module provides the primer the ResourcePreloader uses outside a browser:
it downloads each resource once so that caches between the client and the
resource host are warm when the item is displayed.
"""

from __future__ import annotations

import httpx
import structlog

from prefetch_http.http_config import HttpProtocolConfig

# Get logger for this module
logger = structlog.get_logger(__name__)


class HttpResourcePrimer:
    """Async callable that warms one resource locator over HTTP."""

    def __init__(
        self,
        config: HttpProtocolConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or HttpProtocolConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.timeout,
            headers=self._config.default_headers,
            follow_redirects=True,
        )
        self.primed_bytes = 0

    async def __call__(self, locator: str) -> None:
        """Download the resource and discard its body.

        Raises:
            httpx.HTTPError: If the resource cannot be retrieved.
        """
        async with self._client.stream("GET", locator) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                self.primed_bytes += len(chunk)
        logger.debug("RESOURCE_DOWNLOADED", locator=locator, status=response.status_code)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
