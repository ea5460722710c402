"""Financial news adapter: SearXNG news category restricted to market coverage."""

import httpx

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.config import config
from webresearch.core.errors import SourceError
from webresearch.orchestrators.research.adapters.web import (
    _searxng_endpoint,
    parse_searxng_results,
)
from webresearch.orchestrators.research.constants import DEFAULT_RESULT_CAP
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.models import SearchQuery

# Outlets with editorial standards for market reporting.
FINANCIAL_OUTLETS: dict[str, float] = {
    "reuters.com": 0.9,
    "bloomberg.com": 0.9,
    "ft.com": 0.88,
    "wsj.com": 0.88,
    "sec.gov": 0.95,
    "economist.com": 0.85,
    "cnbc.com": 0.78,
    "marketwatch.com": 0.75,
    "finance.yahoo.com": 0.7,
}


def _outlet_credibility(url: str) -> float | None:
    host = url.split("//", 1)[-1].split("/", 1)[0].lower()
    if host.startswith("www."):
        host = host[4:]
    for domain, score in FINANCIAL_OUTLETS.items():
        if host == domain or host.endswith("." + domain):
            return score
    return None


class FinancialNewsAdapter(SourceAdapter):
    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        result_cap: int = DEFAULT_RESULT_CAP,
    ):
        super().__init__(client=client, result_cap=result_cap)
        self._base_url = _searxng_endpoint(base_url or config.searxng_url or "")

    def get_category(self) -> SourceCategory:
        return SourceCategory.FINANCIAL

    async def _search(self, query: SearchQuery, budget: float) -> list[RawResult]:
        if not self._base_url:
            raise SourceError("SEARXNG_URL is not configured", source="financial")

        params = {
            "q": query.text,
            "format": "json",
            "language": "en-US",
            "categories": "news",
        }
        client = self._get_client(budget)
        response = await client.get(self._base_url, params=params, timeout=budget)
        response.raise_for_status()
        parsed = parse_searxng_results(
            response.json(), self.get_category(), self.result_cap
        )
        results: list[RawResult] = []
        for r in parsed:
            credibility = _outlet_credibility(r.url)
            if credibility is not None:
                r = r.model_copy(update={"credibility_estimate": credibility})
            results.append(r)
        return results
