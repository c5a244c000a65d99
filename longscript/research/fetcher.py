"""Fetch full text for sources that only carry a link."""

import asyncio
from typing import List, Sequence

import httpx
import trafilatura
from rich.console import Console

from ..models import Source
from .models import FetchResult

console = Console()


class SourceFetcher:
    """Fetch HTML and extract main text for sources flagged as not yet fetched."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_concurrent: int = 3,
        user_agent: str = "Longscript/0.1 (research fetcher)",
    ) -> None:
        """Initialize source fetcher."""
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.user_agent = user_agent

    async def fetch_source(self, client: httpx.AsyncClient, source: Source) -> FetchResult:
        """Fetch and extract a single source."""
        try:
            response = await client.get(source.url)
            response.raise_for_status()

            extracted = trafilatura.extract(
                response.text,
                include_comments=False,
                include_tables=False,
                deduplicate=True,
                favor_precision=True,
                url=str(response.url),
            )
            if not extracted:
                return FetchResult(
                    url=source.url,
                    title=source.title,
                    fetch_success=False,
                    error="Failed to extract source content",
                )
            return FetchResult(url=source.url, title=source.title, text=extracted)

        except httpx.HTTPStatusError as e:
            return FetchResult(
                url=source.url,
                title=source.title,
                fetch_success=False,
                error=f"HTTP {e.response.status_code}",
            )
        except httpx.TimeoutException:
            return FetchResult(url=source.url, title=source.title, fetch_success=False, error="Request timed out")
        except httpx.HTTPError as e:
            return FetchResult(url=source.url, title=source.title, fetch_success=False, error=f"Request failed: {e}")

    async def fetch_all(self, sources: Sequence[Source]) -> List[Source]:
        """
        Fill in content for every source with ``content_already_fetched=False``.

        Sources that fail to fetch are returned unchanged; the adequacy check then
        decides whether what remains is enough.
        """
        pending = [i for i, s in enumerate(sources) if not s.content_already_fetched and s.url]
        if not pending:
            return list(sources)

        semaphore = asyncio.Semaphore(self.max_concurrent)
        headers = {"User-Agent": self.user_agent, "Accept": "text/html,application/xhtml+xml"}

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, headers=headers) as client:

            async def fetch_with_semaphore(source: Source) -> FetchResult:
                async with semaphore:
                    return await self.fetch_source(client, source)

            results = await asyncio.gather(*(fetch_with_semaphore(sources[i]) for i in pending))

        updated = list(sources)
        for index, result in zip(pending, results):
            if result.fetch_success:
                updated[index] = sources[index].model_copy(
                    update={"content": result.text, "content_already_fetched": True}
                )
            else:
                console.print(f"[yellow]Could not fetch {result.title}: {result.error}[/yellow]")
        return updated

    def fetch_sources_sync(self, sources: Sequence[Source]) -> List[Source]:
        """Synchronous wrapper for fetch_all."""
        return asyncio.run(self.fetch_all(sources))
