"""Adapter, store and orchestrator wiring at startup."""

from webresearch.contracts.research_v1 import SourceCategory
from webresearch.core.config import Config, config
from webresearch.core.logger import logger
from webresearch.llm.openai_client import ChatCompletionClient
from webresearch.orchestrators.research.adapters import (
    AcademicSearchAdapter,
    FinancialNewsAdapter,
    PatentSearchAdapter,
    WebSearchAdapter,
)
from webresearch.orchestrators.research.assembler import ResultAssembler
from webresearch.orchestrators.research.coordinator import FanOutCoordinator
from webresearch.orchestrators.research.enrichment import EnrichmentStage
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)
from webresearch.orchestrators.research.planner import QueryPlanner
from webresearch.orchestrators.research.scoring import ResultScorer
from webresearch.storage.artifacts import ArtifactStore, create_artifact_store


def build_adapters(cfg: Config) -> list[SourceAdapter]:
    # Unconfigured adapters stay registered and fail per task with a clear reason.
    cap = cfg.adapter_result_cap
    if not cfg.searxng_url:
        logger.warning("SEARXNG_URL not set: web and financial tasks will fail")
    if not cfg.patentsview_api_key:
        logger.warning("PATENTSVIEW_API_KEY not set: patent tasks will fail")
    return [
        AcademicSearchAdapter(email=cfg.openalex_email, result_cap=cap),
        PatentSearchAdapter(api_key=cfg.patentsview_api_key, result_cap=cap),
        FinancialNewsAdapter(base_url=cfg.searxng_url, result_cap=cap),
        WebSearchAdapter(base_url=cfg.searxng_url, result_cap=cap),
    ]


def build_enrichment(cfg: Config) -> EnrichmentStage:
    client = ChatCompletionClient(
        api_key=cfg.enrichment_api_key,
        models=cfg.enrichment_models,
        base_url=cfg.enrichment_base_url,
    )
    return EnrichmentStage(client=client, enabled=cfg.enrichment_enabled)


def build_orchestrator(
    cfg: Config | None = None,
    adapters: list[SourceAdapter] | None = None,
    store: ArtifactStore | None = None,
    enrichment: EnrichmentStage | None = None,
) -> ResearchAggregationOrchestrator:
    """Wire the pipeline from config; tests pass their own adapters/store/enrichment."""
    cfg = cfg or config
    for problem in cfg.validate():
        logger.warning(f"Config: {problem}")

    adapters = adapters if adapters is not None else build_adapters(cfg)
    coordinator = FanOutCoordinator(
        adapters,
        adapter_timeout=cfg.adapter_timeout_seconds,
        deadline=cfg.aggregation_deadline_seconds,
        max_concurrency=cfg.max_concurrency,
    )
    missing = [c.value for c in SourceCategory if not coordinator.has_adapter(c)]
    if missing:
        logger.warning(f"No adapter registered for: {', '.join(missing)}")

    return ResearchAggregationOrchestrator(
        planner=QueryPlanner(max_queries=cfg.max_queries),
        coordinator=coordinator,
        scorer=ResultScorer(),
        assembler=ResultAssembler(
            store if store is not None else create_artifact_store(cfg.artifact_store)
        ),
        enrichment=enrichment if enrichment is not None else build_enrichment(cfg),
    )
