"""Error taxonomy for the research aggregation pipeline.

Only InvalidInputError and AllSourcesFailedError reach the caller. SourceError,
EnrichmentUnavailableError and ArtifactStoreError are absorbed by the pipeline
and reported through diagnostics.
"""

from typing import Any


class WebResearchError(Exception):
    """Base exception for all webresearch errors."""

    error_code: str = "WR_ERR_000"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.context:
            result["context"] = self.context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __str__(self) -> str:
        return self.message


class InvalidInputError(WebResearchError):
    """Bad request shape: empty topic, no usable source category, etc."""

    error_code = "WR_INPUT_001"


class SourceError(WebResearchError):
    """A single source adapter failed (timeout, network, malformed response)."""

    error_code = "WR_SOURCE_001"

    def __init__(
        self,
        message: str,
        *,
        source: str,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = {"source": source, **(context or {})}
        super().__init__(message, cause=cause, context=ctx)
        self.source = source


class AllSourcesFailedError(WebResearchError):
    """Every adapter task failed, timed out, or was cancelled."""

    error_code = "WR_SOURCE_002"


class EnrichmentUnavailableError(WebResearchError):
    """Enrichment service disabled, unconfigured, unreachable, or unparseable."""

    error_code = "WR_ENRICH_001"


class ArtifactStoreError(WebResearchError):
    """Provenance artifact could not be persisted."""

    error_code = "WR_STORE_001"
