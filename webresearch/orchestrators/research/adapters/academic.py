"""Academic search adapter (OpenAlex works API).

OpenAlex is free and keyless; passing a contact email puts requests in the
polite pool. Abstracts come back as an inverted index and are rebuilt here.
"""

import math
from typing import Any

import httpx

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.config import config
from webresearch.orchestrators.research.constants import DEFAULT_RESULT_CAP
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.models import SearchQuery

OA_WORKS_URL = "https://api.openalex.org/works"


def rebuild_abstract(inverted_index: dict[str, list[int]] | None) -> str:
    if not inverted_index:
        return ""
    positions: dict[int, str] = {}
    for word, indexes in inverted_index.items():
        for idx in indexes:
            positions[idx] = word
    return " ".join(positions[i] for i in sorted(positions))


def citation_credibility(cited_by_count: int) -> float:
    """Peer-reviewed baseline, nudged up by citation volume (capped at 0.97)."""
    bonus = min(0.17, math.log10(1 + max(0, cited_by_count)) * 0.05)
    return round(0.8 + bonus, 4)


def _landing_url(work: dict[str, Any]) -> str:
    location = work.get("primary_location") or {}
    url = location.get("landing_page_url") or ""
    if url:
        return url
    doi = work.get("doi") or ""
    if doi:
        return doi if doi.startswith("http") else f"https://doi.org/{doi}"
    return work.get("id") or ""


def parse_openalex_works(data: dict[str, Any], limit: int) -> list[RawResult]:
    works = data.get("results")
    if works is None:
        return []
    if not isinstance(works, list):
        raise ValueError("'results' is not a list")

    scored = [w for w in works[:limit] if isinstance(w, dict)]
    max_relevance = max(
        (float(w.get("relevance_score") or 0.0) for w in scored), default=0.0
    )

    results: list[RawResult] = []
    for i, work in enumerate(scored):
        url = _landing_url(work)
        title = work.get("display_name") or work.get("title") or ""
        if not url or not title:
            continue
        abstract = rebuild_abstract(work.get("abstract_inverted_index"))
        raw_relevance = float(work.get("relevance_score") or 0.0)
        if max_relevance > 0:
            relevance = 0.5 + 0.5 * (raw_relevance / max_relevance)
        else:
            relevance = max(0.3, 1.0 - (i * 0.05))
        cited_by = int(work.get("cited_by_count") or 0)
        source_info = (work.get("primary_location") or {}).get("source") or {}
        results.append(
            RawResult(
                title=title,
                url=url,
                snippet=abstract[:300],
                content=abstract or None,
                publish_date=work.get("publication_date"),
                source=SourceCategory.ACADEMIC,
                relevance_estimate=relevance,
                credibility_estimate=citation_credibility(cited_by),
                metadata={
                    "openalex_id": work.get("id"),
                    "doi": work.get("doi"),
                    "cited_by_count": cited_by,
                    "venue": source_info.get("display_name"),
                    "is_oa": (work.get("open_access") or {}).get("is_oa"),
                },
            )
        )
    return results


class AcademicSearchAdapter(SourceAdapter):
    def __init__(
        self,
        email: str | None = None,
        client: httpx.AsyncClient | None = None,
        result_cap: int = DEFAULT_RESULT_CAP,
        base_url: str = OA_WORKS_URL,
    ):
        super().__init__(client=client, result_cap=result_cap)
        self._email = email if email is not None else config.openalex_email
        self._base_url = base_url

    def get_category(self) -> SourceCategory:
        return SourceCategory.ACADEMIC

    async def _search(self, query: SearchQuery, budget: float) -> list[RawResult]:
        params = {"search": query.text, "per_page": str(min(self.result_cap, 200))}
        if self._email:
            params["mailto"] = self._email
        client = self._get_client(budget)
        response = await client.get(
            self._base_url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=budget,
        )
        response.raise_for_status()
        return parse_openalex_works(response.json(), self.result_cap)
