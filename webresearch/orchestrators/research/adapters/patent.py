"""Patent search adapter (PatentsView search API, requires an API key)."""

from typing import Any

import httpx

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.config import config
from webresearch.core.errors import SourceError
from webresearch.orchestrators.research.constants import DEFAULT_RESULT_CAP
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.models import SearchQuery

PATENTSVIEW_URL = "https://search.patentsview.org/api/v1/patent/"
PATENT_FIELDS = ["patent_id", "patent_title", "patent_abstract", "patent_date"]
GRANTED_PATENT_CREDIBILITY = 0.9


def parse_patentsview(data: dict[str, Any], limit: int) -> list[RawResult]:
    """PatentsView hits carry no relevance score; the scorer rates them lexically."""
    if data.get("error"):
        raise ValueError(f"PatentsView error: {data.get('error')}")
    patents = data.get("patents")
    if patents is None:
        return []
    if not isinstance(patents, list):
        raise ValueError("'patents' is not a list")

    results: list[RawResult] = []
    for i, patent in enumerate(patents[:limit]):
        if not isinstance(patent, dict):
            continue
        patent_id = str(patent.get("patent_id") or "").strip()
        title = patent.get("patent_title") or ""
        if not patent_id or not title:
            continue
        abstract = patent.get("patent_abstract") or ""
        results.append(
            RawResult(
                title=title,
                url=f"https://patents.google.com/patent/US{patent_id}",
                snippet=abstract[:300],
                content=abstract or None,
                publish_date=patent.get("patent_date"),
                source=SourceCategory.PATENT,
                credibility_estimate=GRANTED_PATENT_CREDIBILITY,
                metadata={"patent_id": patent_id, "rank": i + 1},
            )
        )
    return results


class PatentSearchAdapter(SourceAdapter):
    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        result_cap: int = DEFAULT_RESULT_CAP,
        base_url: str = PATENTSVIEW_URL,
    ):
        super().__init__(client=client, result_cap=result_cap)
        self._api_key = (api_key if api_key is not None else config.patentsview_api_key).strip()
        self._base_url = base_url

    def get_category(self) -> SourceCategory:
        return SourceCategory.PATENT

    async def _search(self, query: SearchQuery, budget: float) -> list[RawResult]:
        if not self._api_key:
            raise SourceError("PATENTSVIEW_API_KEY is not configured", source="patent")

        payload = {
            "q": {
                "_or": [
                    {"_text_any": {"patent_title": query.text}},
                    {"_text_any": {"patent_abstract": query.text}},
                ]
            },
            "f": PATENT_FIELDS,
            "o": {"size": self.result_cap},
        }
        headers = {
            "X-Api-Key": self._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        client = self._get_client(budget)
        response = await client.post(
            self._base_url, json=payload, headers=headers, timeout=budget
        )
        response.raise_for_status()
        return parse_patentsview(response.json(), self.result_cap)
