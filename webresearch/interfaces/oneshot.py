"""One-shot interface: run a single aggregation, print the JSON response, exit."""

from __future__ import annotations

import asyncio
import json
import uuid

from webresearch.contracts.research_v1 import ErrorResponse, ResearchRequest
from webresearch.core.bootstrap import build_orchestrator
from webresearch.core.errors import InvalidInputError, WebResearchError
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)

DEFAULT_SOURCES = ["web", "paper"]


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def run_oneshot(
    topic: str,
    sources: list[str] | None = None,
    description: str | None = None,
    orchestrator: ResearchAggregationOrchestrator | None = None,
) -> int:
    text = (topic or "").strip()
    if not text:
        print("Error: topic must not be empty")
        return 2

    request = ResearchRequest(
        topic=text,
        description=description,
        sources=sources or DEFAULT_SOURCES,
        project_id="oneshot",
        stage_id=f"oneshot-{uuid.uuid4().hex[:8]}",
    )
    owned = orchestrator is None
    orchestrator = orchestrator or build_orchestrator()
    try:
        report = await orchestrator.aggregate(request)
        _print_json(report.to_response().model_dump(by_alias=True, mode="json"))
        return 0
    except WebResearchError as e:
        _print_json(ErrorResponse(error=e.message, error_code=e.error_code).model_dump(by_alias=True))
        return 2 if isinstance(e, InvalidInputError) else 1
    finally:
        if owned:
            await orchestrator.close()


def main(topic: str, sources: list[str] | None = None, description: str | None = None) -> int:
    return asyncio.run(run_oneshot(topic=topic, sources=sources, description=description))
