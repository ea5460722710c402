"""Web Research Contract v1.

Defines the canonical types for:
  - Source categories and the request-name mapping (SourceCategory)
  - Normalized adapter output (RawResult) and ranked output (ScoredResult)
  - The HTTP invocation contract (ResearchRequest, ResearchResponse, ErrorResponse)

Wire format is camelCase (relevanceScore, publishDate, ...) to match the
dashboard client; Python code uses the snake_case field names.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Source categories
# ---------------------------------------------------------------------------


class SourceCategory(StrEnum):
    WEB = "web"
    ACADEMIC = "academic"
    PATENT = "patent"
    FINANCIAL = "financial"


# Request source name -> category. "paper" is what the dashboard sends.
REQUEST_SOURCE_ALIASES: dict[str, SourceCategory] = {
    "web": SourceCategory.WEB,
    "paper": SourceCategory.ACADEMIC,
    "papers": SourceCategory.ACADEMIC,
    "academic": SourceCategory.ACADEMIC,
    "patent": SourceCategory.PATENT,
    "patents": SourceCategory.PATENT,
    "financial": SourceCategory.FINANCIAL,
    "finance": SourceCategory.FINANCIAL,
}

# Lower value sorts first on ties: academic > patent > financial > web > other.
CATEGORY_PRIORITY: dict[str, int] = {
    SourceCategory.ACADEMIC.value: 0,
    SourceCategory.PATENT.value: 1,
    SourceCategory.FINANCIAL.value: 2,
    SourceCategory.WEB.value: 3,
}
OTHER_CATEGORY_PRIORITY = 4

RELEVANCE_WEIGHT = 0.6
CREDIBILITY_WEIGHT = 0.4


def category_priority(source: str) -> int:
    return CATEGORY_PRIORITY.get(str(source), OTHER_CATEGORY_PRIORITY)


def resolve_source_names(
    names: list[str],
) -> tuple[list[SourceCategory], list[str]]:
    """Map request source names to categories.

    Returns (categories in priority order without duplicates, unknown names).
    """
    found: set[SourceCategory] = set()
    unknown: list[str] = []
    for raw in names:
        key = str(raw or "").strip().lower()
        category = REQUEST_SOURCE_ALIASES.get(key)
        if category is None:
            if key and key not in unknown:
                unknown.append(key)
            continue
        found.add(category)
    ordered = sorted(found, key=lambda c: category_priority(c.value))
    return ordered, unknown


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class RawResult(BaseModel):
    """One candidate document as returned by a source adapter."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    title: str = Field(default="")
    url: str = Field(default="")
    snippet: str = Field(default="")
    content: str | None = Field(default=None, description="Full text when available")
    publish_date: date | None = Field(default=None)
    source: SourceCategory
    relevance_estimate: float | None = Field(
        default=None, description="Adapter-side relevance estimate, clamped by the scorer"
    )
    credibility_estimate: float | None = Field(
        default=None, description="Adapter-side credibility estimate, clamped by the scorer"
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Source-specific metadata (doi, patent_id, engine, cited_by_count, ...)",
    )

    @field_validator("publish_date", mode="before")
    @classmethod
    def _parse_publish_date(cls, value: Any) -> Any:
        # Adapters hand over whatever the upstream API returned; keep the date part only.
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                return None
        return value


class ScoredResult(BaseModel):
    """A RawResult with normalized scores and an optional enrichment insight."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(description="Stable id derived from the normalized URL or title")
    title: str = Field(default="")
    url: str = Field(default="")
    snippet: str = Field(default="")
    content: str | None = Field(default=None)
    publish_date: date | None = Field(default=None)
    source: SourceCategory
    relevance_score: float = Field(ge=0.0, le=1.0)
    credibility_score: float = Field(ge=0.0, le=1.0)
    insight: str | None = Field(default=None, description="Enrichment annotation")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def composite_score(self) -> float:
        """0.6 x relevance + 0.4 x credibility."""
        return round(
            RELEVANCE_WEIGHT * self.relevance_score
            + CREDIBILITY_WEIGHT * self.credibility_score,
            6,
        )


# ---------------------------------------------------------------------------
# HTTP invocation contract
# ---------------------------------------------------------------------------


class ResearchRequest(BaseModel):
    """Body of POST /web-research."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    topic: str = Field(description="Research topic; must be non-empty")
    description: str | None = Field(default=None, description="Optional context")
    sources: list[str] = Field(
        default_factory=list, description="web | paper | patent | financial"
    )
    project_id: str = Field(description="Invoking project id")
    stage_id: str = Field(description="Pipeline stage id the artifact is keyed by")


class ResearchSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_results: int = 0
    source_breakdown: dict[str, int] = Field(default_factory=dict)
    average_relevance: float = 0.0
    credibility_score: float = Field(
        default=0.0, description="Average credibility across returned results"
    )
    average_quality: float = 0.0


class ResearchResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    data: list[ScoredResult] = Field(default_factory=list)
    summary: ResearchSummary = Field(default_factory=ResearchSummary)
    diagnostics: list[dict[str, Any]] = Field(default_factory=list)
    enrichment: dict[str, Any] = Field(default_factory=dict)
    generated_at: str | None = Field(default=None, description="ISO 8601")


class ErrorResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = False
    error: str
    error_code: str | None = None
