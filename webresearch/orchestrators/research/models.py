"""Pipeline models: planned queries, task diagnostics, and the final report.

Uses RawResult/ScoredResult from the research contract as the result types.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from webresearch.contracts.research_v1 import (
    RawResult,
    ResearchResponse,
    ResearchSummary,
    ScoredResult,
    SourceCategory,
)
from webresearch.orchestrators.research.constants import EnrichmentState, TaskStatus


@dataclass(frozen=True)
class SearchQuery:
    """A derived query string bound to the category it was planned for."""

    text: str
    category: SourceCategory


@dataclass
class SourceDiagnostic:
    """Outcome of one adapter task; reported, never raised."""

    category: str
    query: str
    status: TaskStatus
    result_count: int = 0
    elapsed_ms: float = 0.0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class FanOutResult:
    """Everything the coordinator collected, merged in plan order."""

    results: list[RawResult] = field(default_factory=list)
    diagnostics: list[SourceDiagnostic] = field(default_factory=list)
    deadline_exceeded: bool = False

    @property
    def succeeded_tasks(self) -> int:
        return sum(1 for d in self.diagnostics if d.status.succeeded)


@dataclass
class EnrichmentOutcome:
    results: list[ScoredResult]
    state: EnrichmentState
    reason: str | None = None
    model: str | None = None
    annotated: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.state.value, "annotated": self.annotated}
        if self.reason:
            data["reason"] = self.reason
        if self.model:
            data["model"] = self.model
        return data


class AggregationReport(BaseModel):
    """Final output of one aggregation invocation."""

    model_config = ConfigDict(frozen=True)

    results: list[ScoredResult] = Field(default_factory=list)
    summary: ResearchSummary = Field(default_factory=ResearchSummary)
    diagnostics: list[dict[str, Any]] = Field(default_factory=list)
    enrichment: dict[str, Any] = Field(default_factory=dict)
    topic: str
    sources: list[str] = Field(default_factory=list)
    project_id: str = ""
    stage_id: str = ""
    generated_at: str = Field(description="ISO 8601 UTC")
    persisted: bool = False

    def to_response(self) -> ResearchResponse:
        return ResearchResponse(
            success=True,
            data=list(self.results),
            summary=self.summary,
            diagnostics=list(self.diagnostics),
            enrichment=dict(self.enrichment),
            generated_at=self.generated_at,
        )
