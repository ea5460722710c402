"""LangSmith tracing integration (enabled with LANGSMITH_TRACING=true)."""

from __future__ import annotations

import atexit
import os
from collections.abc import Callable
from typing import Any

from langsmith import Client as LangSmithClient
from langsmith import traceable as _ls_traceable

_ENABLED = os.getenv("LANGSMITH_TRACING", "").strip().lower() == "true"
_PROJECT = os.getenv("LANGSMITH_PROJECT", "webresearch")

_client: LangSmithClient | None = None


def is_enabled() -> bool:
    return _ENABLED


def get_client() -> LangSmithClient | None:
    global _client
    if not _ENABLED:
        return None
    if _client is None:
        _client = LangSmithClient()
    return _client


def traceable(
    name: str | None = None,
    run_type: str = "chain",
    **kwargs: Any,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Wrap fn in a LangSmith run when tracing is on; identity otherwise."""
    if not _ENABLED:

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            return fn

        return decorator

    return _ls_traceable(  # type: ignore[call-overload]
        name=name,
        run_type=run_type,
        project_name=kwargs.pop("project_name", _PROJECT),
        **kwargs,
    )


def flush() -> None:
    c = get_client()
    if c is not None:
        c.flush()


if _ENABLED:
    atexit.register(flush)
