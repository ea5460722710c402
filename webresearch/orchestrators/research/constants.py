"""Shared typed constants for research aggregation control flow."""

from enum import StrEnum

# Near-duplicate title threshold (token-set Jaccard)
TITLE_JACCARD_THRESHOLD = 0.9

# Enrichment bounds
ENRICHMENT_SAMPLE_SIZE = 5
ENRICHMENT_MAX_UPLIFT = 0.05
ENRICHMENT_MAX_TOKENS = 800
ENRICHMENT_TEMPERATURE = 0.2

# Fan-out bounds
DEFAULT_ADAPTER_TIMEOUT_SECONDS = 10.0
DEFAULT_DEADLINE_SECONDS = 30.0
DEFAULT_MAX_CONCURRENCY = 25
DEFAULT_RESULT_CAP = 20
DEFAULT_MAX_QUERIES = 12

CONTEXT_WORD_LIMIT = 5

ARTIFACT_TYPE = "web_research"


class TaskStatus(StrEnum):
    """Outcome of one (category x query) adapter task."""

    OK = "ok"
    EMPTY = "empty"
    TIMEOUT = "timeout"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def succeeded(self) -> bool:
        return self in (TaskStatus.OK, TaskStatus.EMPTY)


class EnrichmentState(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    DISABLED = "disabled"
