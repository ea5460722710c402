"""Orchestrators: multi-step async pipelines (e.g. research aggregation)."""

from webresearch.orchestrators.research import (
    AggregationReport,
    ResearchAggregationOrchestrator,
    SourceAdapter,
)

__all__ = [
    "AggregationReport",
    "ResearchAggregationOrchestrator",
    "SourceAdapter",
]
