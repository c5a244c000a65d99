from __future__ import annotations

import asyncio

import httpx

from longscript.models import Source
from longscript.research import SourceFetcher


def fetch_one(handler, source: Source):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await SourceFetcher().fetch_source(client, source)

    return asyncio.run(run())


def test_http_error_reported():
    result = fetch_one(lambda request: httpx.Response(404), Source(title="Gone", url="https://example.com/gone"))
    assert not result.fetch_success
    assert result.error == "HTTP 404"


def test_timeout_reported():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = fetch_one(handler, Source(title="Slow", url="https://example.com/slow"))
    assert result.error == "Request timed out"


def test_already_fetched_sources_untouched():
    sources = [Source(title="Done", url="https://example.com/a", content="text"), Source(title="No link")]
    assert SourceFetcher().fetch_sources_sync(sources) == sources
