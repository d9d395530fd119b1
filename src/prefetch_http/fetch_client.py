"""HTTP fetch client for item batches.

This module provides the FetchClient, which asks the provider for a batch of
items while excluding the IDs already queued, and turns every kind of failure
into a ``FetchError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from prefetch_core.core import DEFAULT_LOCATOR_FIELD, Item
from prefetch_core.exceptions import (
    ItemValidationError,
    ProtocolFailure,
    ShapeFailure,
    TransportFailure,
)
from prefetch_core.retry import RetryEngine, create_retry_engine
from prefetch_http.http_config import HttpProtocolConfig

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prefetch_core.core import ItemId

# Get logger for this module
logger = structlog.get_logger(__name__)


def _is_transient(error: Exception) -> bool:
    """Decide whether a failed fetch is worth another attempt."""
    if isinstance(error, TransportFailure):
        return True
    return isinstance(error, ProtocolFailure) and error.retryable


class FetchClient:
    """Fetches batches of items from the provider endpoint.

    The response body must look like ``{"success": true, "data": {"items": [...]}}``.
    """

    def __init__(
        self,
        config: HttpProtocolConfig | None = None,
        locator_field: str = DEFAULT_LOCATOR_FIELD,
        client: httpx.AsyncClient | None = None,
        retry_engine: RetryEngine | None = None,
    ) -> None:
        """Initialize the fetch client.

        Args:
            config: HTTP configuration. Defaults to ``HttpProtocolConfig()``.
            locator_field: Name of the item field holding the resource locator.
            client: Shared httpx client. When omitted the fetch client creates
                and owns one.
            retry_engine: Retry engine for transient failures.
        """
        self._config = config or HttpProtocolConfig()
        self._locator_field = locator_field
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.timeout, headers=self._config.default_headers
        )
        self._retry_engine = retry_engine or create_retry_engine(
            max_retries=self._config.max_retries,
            base_delay=self._config.retry_base_delay,
        )

    @property
    def config(self) -> HttpProtocolConfig:
        return self._config

    async def fetch_batch(
        self, count: int, exclude_ids: Iterable[ItemId] = ()
    ) -> list[Item]:
        """Fetch up to ``count`` items the caller does not hold yet.

        Args:
            count: Number of items to request.
            exclude_ids: IDs the provider must not return.

        Returns:
            Items in provider order. An empty list means nothing is available.

        Raises:
            ValueError: If count is not a positive integer.
            FetchError: If the provider is unreachable, answers with an error
                status, or returns an unexpected body.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            error_message = f"count must be a positive integer, got {count!r}"
            raise ValueError(error_message)

        params: dict[str, Any] = {"count": count}
        exclude = ",".join(str(item_id) for item_id in exclude_ids)
        if exclude:
            params["exclude"] = exclude

        async def _attempt() -> list[Item]:
            return await self._fetch_once(params)

        return await self._retry_engine.execute_with_retry_async(
            _attempt, should_retry=_is_transient
        )

    async def _fetch_once(self, params: dict[str, Any]) -> list[Item]:
        url = self._config.endpoint_url
        try:
            response = await self._client.get(
                url, params=params, headers=self._config.default_headers
            )
        except httpx.TimeoutException as e:
            error_message = f"Request to {url} timed out"
            raise TransportFailure(error_message, url) from e
        except httpx.TransportError as e:
            error_message = f"Request to {url} failed: {e}"
            raise TransportFailure(error_message, url) from e

        if not response.is_success:
            error_message = f"Failed to fetch: {response.status_code}"
            raise ProtocolFailure(error_message, response.status_code, url)

        items = self._parse(response, url)
        logger.debug("BATCH_FETCHED", url=url, count=len(items), params=params)
        return items

    def _parse(self, response: httpx.Response, url: str) -> list[Item]:
        try:
            body = response.json()
        except ValueError as e:
            error_message = "Response body is not valid JSON"
            raise ShapeFailure(error_message, url) from e

        if not isinstance(body, dict) or body.get("success") is not True:
            error_message = "Provider reported an unsuccessful response"
            raise ShapeFailure(error_message, url)

        data = body.get("data")
        records = data.get("items") if isinstance(data, dict) else None
        if not isinstance(records, list):
            error_message = "Response is missing the data.items list"
            raise ShapeFailure(error_message, url)

        items: list[Item] = []
        for record in records:
            try:
                items.append(Item.from_dict(record, self._locator_field))
            except ItemValidationError as e:
                error_message = f"Malformed item in response: {e.message}"
                raise ShapeFailure(error_message, url) from e
        return items

    async def close(self) -> None:
        """Close the underlying client if this fetch client created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> FetchClient:
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.close()

