"""Research aggregation: planner, source fan-out, scoring, enrichment, provenance."""

from webresearch.contracts.research_v1 import RawResult, ScoredResult
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.models import AggregationReport
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)

__all__ = [
    "AggregationReport",
    "RawResult",
    "ResearchAggregationOrchestrator",
    "ScoredResult",
    "SourceAdapter",
]
