"""Observability: LangSmith tracing (optional, env-controlled)."""

from webresearch.observability.langsmith import (
    flush,
    get_client,
    is_enabled,
    traceable,
)

__all__ = ["traceable", "flush", "get_client", "is_enabled"]
