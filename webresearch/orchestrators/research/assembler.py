"""Result assembler: summary statistics, the final report, and the provenance write."""

from datetime import UTC, datetime
from typing import Any

from webresearch.contracts.research_v1 import ResearchSummary, ScoredResult
from webresearch.core.errors import ArtifactStoreError
from webresearch.core.logger import logger
from webresearch.orchestrators.research.constants import ARTIFACT_TYPE
from webresearch.orchestrators.research.models import (
    AggregationReport,
    EnrichmentOutcome,
    SourceDiagnostic,
)
from webresearch.storage.artifacts import ArtifactRecord, ArtifactStore


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 4)


def source_breakdown(results: list[ScoredResult]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for r in results:
        counts[r.source.value] = counts.get(r.source.value, 0) + 1
    return counts


def summarize(results: list[ScoredResult]) -> ResearchSummary:
    return ResearchSummary(
        total_results=len(results),
        source_breakdown=source_breakdown(results),
        average_relevance=_mean([r.relevance_score for r in results]),
        credibility_score=_mean([r.credibility_score for r in results]),
        average_quality=_mean(
            [(r.relevance_score + r.credibility_score) / 2 for r in results]
        ),
    )


def artifact_name(topic: str) -> str:
    return f"Web Research Results - {topic}"


class ResultAssembler:
    def __init__(self, store: ArtifactStore):
        self._store = store

    def _artifact_metadata(
        self,
        topic: str,
        sources: list[str],
        project_id: str,
        summary: ResearchSummary,
        diagnostics: list[dict[str, Any]],
        generated_at: str,
    ) -> dict[str, Any]:
        return {
            "topic": topic,
            "sources": sources,
            "projectId": project_id,
            "resultCount": summary.total_results,
            "timestamp": generated_at,
            "qualityScore": summary.average_quality,
            "sourceBreakdown": summary.source_breakdown,
            "diagnostics": diagnostics,
        }

    async def assemble(
        self,
        results: list[ScoredResult],
        *,
        topic: str,
        sources: list[str],
        project_id: str,
        stage_id: str,
        diagnostics: list[SourceDiagnostic],
        enrichment: EnrichmentOutcome,
        extra_diagnostics: list[dict[str, Any]] | None = None,
    ) -> AggregationReport:
        """Build the report and write exactly one artifact for it."""
        generated_at = datetime.now(UTC).isoformat()
        summary = summarize(results)
        diagnostic_dicts = [d.to_dict() for d in diagnostics] + list(extra_diagnostics or [])

        record = ArtifactRecord(
            stage_id=stage_id,
            name=artifact_name(topic),
            type=ARTIFACT_TYPE,
            metadata=self._artifact_metadata(
                topic, sources, project_id, summary, diagnostic_dicts, generated_at
            ),
        )
        persisted = True
        try:
            await self._store.write(record)
        except ArtifactStoreError as e:
            persisted = False
            logger.error(f"Artifact write failed for stage {stage_id}: {e.message}", exception=e.cause)

        return AggregationReport(
            results=list(results),
            summary=summary,
            diagnostics=diagnostic_dicts,
            enrichment=enrichment.to_dict(),
            topic=topic,
            sources=sources,
            project_id=project_id,
            stage_id=stage_id,
            generated_at=generated_at,
            persisted=persisted,
        )

    async def close(self) -> None:
        await self._store.close()
