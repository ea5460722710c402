"""Research aggregation orchestrator.

Pipeline:
  1. Resolve request source names to categories
  2. Plan per-category queries (fails before any adapter is called)
  3. Fan out to source adapters under timeout, concurrency and deadline bounds
  4. Score, deduplicate and rank
  5. Optional enrichment of the top results
  6. Assemble the report and write one provenance artifact
"""

import uuid
from typing import Any

from webresearch.contracts.research_v1 import ResearchRequest, resolve_source_names
from webresearch.core.errors import InvalidInputError, WebResearchError
from webresearch.core.logger import logger
from webresearch.observability import traceable
from webresearch.orchestrators.research.assembler import ResultAssembler
from webresearch.orchestrators.research.constants import EnrichmentState
from webresearch.orchestrators.research.coordinator import FanOutCoordinator
from webresearch.orchestrators.research.enrichment import EnrichmentStage
from webresearch.orchestrators.research.models import (
    AggregationReport,
    EnrichmentOutcome,
)
from webresearch.orchestrators.research.planner import QueryPlanner
from webresearch.orchestrators.research.scoring import ResultScorer


def _ignored_source_diagnostic(name: str) -> dict[str, Any]:
    return {
        "category": name,
        "query": "",
        "status": "ignored",
        "result_count": 0,
        "elapsed_ms": 0.0,
        "error": "unknown source name",
    }


class ResearchAggregationOrchestrator:
    """Turns one research request into a ranked, annotated, persisted report."""

    def __init__(
        self,
        planner: QueryPlanner,
        coordinator: FanOutCoordinator,
        scorer: ResultScorer,
        assembler: ResultAssembler,
        enrichment: EnrichmentStage | None = None,
    ):
        self._planner = planner
        self._coordinator = coordinator
        self._scorer = scorer
        self._assembler = assembler
        self._enrichment = enrichment

    @traceable(name="web_research", run_type="chain")
    async def aggregate(self, request: ResearchRequest) -> AggregationReport:
        topic = (request.topic or "").strip()
        context = (request.description or "").strip() or None
        categories, unknown = resolve_source_names(request.sources)
        category_names = [c.value for c in categories]

        logger.aggregation_start(
            uuid.uuid4().hex[:8],
            topic,
            category_names,
            request.project_id,
            request.stage_id,
        )
        try:
            if unknown:
                logger.warning(f"Ignoring unknown source names: {', '.join(unknown)}")
            if not categories:
                raise InvalidInputError(
                    "No recognised source category requested",
                    context={"sources": list(request.sources)},
                )
            queries = self._planner.plan(topic, categories, context)
            fan_out = await self._coordinator.run(queries)

            ranked = self._scorer.score_and_rank(fan_out.results, topic, context)

            if self._enrichment is None:
                enrichment = EnrichmentOutcome(results=ranked, state=EnrichmentState.DISABLED)
            else:
                enrichment = await self._enrichment.enrich(ranked, topic, context)

            report = await self._assembler.assemble(
                enrichment.results,
                topic=topic,
                sources=category_names,
                project_id=request.project_id,
                stage_id=request.stage_id,
                diagnostics=fan_out.diagnostics,
                enrichment=enrichment,
                extra_diagnostics=[_ignored_source_diagnostic(n) for n in unknown],
            )
        except WebResearchError as e:
            logger.aggregation_done(0, {}, False, error_reason=e.message)
            raise
        except Exception as e:
            logger.aggregation_done(0, {}, False, error_reason=f"{type(e).__name__}: {e!s}")
            raise

        logger.aggregation_done(
            report.summary.total_results, report.summary.source_breakdown, True
        )
        return report

    async def close(self) -> None:
        await self._coordinator.close()
        if self._enrichment is not None:
            await self._enrichment.close()
        await self._assembler.close()
