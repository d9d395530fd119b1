"""Tests for the HTTP resource primer."""

import httpx
import pytest

from prefetch_core.core import Item
from prefetch_core.preload import ResourcePreloader
from prefetch_http.preloader import HttpResourcePrimer


class TestHttpResourcePrimer:
    """Test downloading resources ahead of display."""

    @pytest.mark.asyncio
    async def test_downloads_resource(self) -> None:
        fetched: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            fetched.append(str(request.url))
            return httpx.Response(200, content=b"\x89PNG" + b"0" * 96)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        primer = HttpResourcePrimer(client=client)

        await primer("https://img.example/1.png")

        assert fetched == ["https://img.example/1.png"]
        assert primer.primed_bytes == 100
        await client.aclose()

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(404))
        )
        primer = HttpResourcePrimer(client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await primer("https://img.example/missing.png")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_preloader_absorbs_primer_failures(self) -> None:
        """Test that failed downloads stay inside the preloader."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )
        preloader = ResourcePreloader(HttpResourcePrimer(client=client))

        preloader.preload([Item(id=1, resource_url="https://img.example/1.png")])
        await preloader.drain()

        assert preloader.primed == frozenset({"https://img.example/1.png"})
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_only_owned_client(self) -> None:
        shared = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )
        await HttpResourcePrimer(client=shared).close()
        assert shared.is_closed is False
        await shared.aclose()

        owned = HttpResourcePrimer()
        await owned.close()
        assert owned._client.is_closed is True
