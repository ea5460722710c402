"""Web search adapter (SearXNG). Returns RawResult."""

from typing import Any

import httpx

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.config import config
from webresearch.core.errors import SourceError
from webresearch.orchestrators.research.constants import DEFAULT_RESULT_CAP
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.models import SearchQuery


def _searxng_endpoint(base_url: str) -> str:
    url = base_url.rstrip("/") if base_url else ""
    if url and not url.endswith("/search"):
        url = url + "/search"
    return url


def parse_searxng_results(
    data: dict[str, Any], category: SourceCategory, limit: int
) -> list[RawResult]:
    raw = data.get("results")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("'results' is not a list")

    results: list[RawResult] = []
    for i, item in enumerate(raw[:limit]):
        if not isinstance(item, dict):
            continue
        url = item.get("url") or ""
        if not url:
            continue
        # Empty titles never match each other in title dedup.
        title = item.get("title") or ""
        content = item.get("content") or item.get("snippet") or ""
        # Engine rank is the only relevance signal SearXNG gives us.
        score = max(0.3, 1.0 - (i * 0.05))
        results.append(
            RawResult(
                title=title,
                url=url,
                snippet=content,
                publish_date=item.get("publishedDate") or None,
                source=category,
                relevance_estimate=score,
                metadata={
                    "engine": item.get("engine"),
                    "engines": item.get("engines") or [],
                    "rank": i + 1,
                },
            )
        )
    return results


class WebSearchAdapter(SourceAdapter):
    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        result_cap: int = DEFAULT_RESULT_CAP,
    ):
        super().__init__(client=client, result_cap=result_cap)
        self._base_url = _searxng_endpoint(base_url or config.searxng_url or "")

    def get_category(self) -> SourceCategory:
        return SourceCategory.WEB

    async def _search(self, query: SearchQuery, budget: float) -> list[RawResult]:
        if not self._base_url:
            raise SourceError("SEARXNG_URL is not configured", source="web")
        if not query.text.strip():
            return []

        params = {"q": query.text, "format": "json", "language": "en-US"}
        client = self._get_client(budget)
        response = await client.get(self._base_url, params=params, timeout=budget)
        response.raise_for_status()
        return parse_searxng_results(response.json(), self.get_category(), self.result_cap)
