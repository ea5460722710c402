from webresearch.contracts.research_v1 import (
    RawResult,
    ResearchRequest,
    ResearchResponse,
    ScoredResult,
    SourceCategory,
)

__all__ = [
    "RawResult",
    "ResearchRequest",
    "ResearchResponse",
    "ScoredResult",
    "SourceCategory",
]
