from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.errors import AllSourcesFailedError, InvalidInputError
from webresearch.interfaces.api import create_app, status_for
from webresearch.orchestrators.research.assembler import ResultAssembler
from webresearch.orchestrators.research.coordinator import FanOutCoordinator
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)
from webresearch.orchestrators.research.planner import QueryPlanner
from webresearch.orchestrators.research.scoring import ResultScorer
from webresearch.storage.artifacts import NullArtifactStore

BODY = {
    "topic": "sodium ion batteries",
    "description": "grid storage cost",
    "sources": ["web", "paper"],
    "projectId": "proj-1",
    "stageId": "stage-1",
}


class StaticAdapter(SourceAdapter):
    def __init__(self, category, results):
        super().__init__()
        self.category = category
        self.results = results

    def get_category(self):
        return self.category

    async def _search(self, query, budget):
        return list(self.results)


def _real_orchestrator() -> ResearchAggregationOrchestrator:
    adapters = [
        StaticAdapter(
            SourceCategory.WEB,
            [RawResult(title="Sodium ion outlook", url="https://energy.gov/na-ion",
                       source=SourceCategory.WEB, snippet="sodium ion batteries for grid storage")],
        ),
        StaticAdapter(
            SourceCategory.ACADEMIC,
            [RawResult(title="Hard carbon anodes", url="https://journal.org/hc",
                       source=SourceCategory.ACADEMIC, relevance_estimate=0.9,
                       credibility_estimate=0.88)],
        ),
    ]
    return ResearchAggregationOrchestrator(
        planner=QueryPlanner(year=2025),
        coordinator=FanOutCoordinator(adapters, adapter_timeout=1, deadline=5),
        scorer=ResultScorer(),
        assembler=ResultAssembler(NullArtifactStore()),
    )


def _failing_orchestrator(error: Exception):
    return SimpleNamespace(aggregate=AsyncMock(side_effect=error), close=AsyncMock())


def test_web_research_success_contract():
    with TestClient(create_app(_real_orchestrator())) as client:
        response = client.post("/api/v1/web-research", json=BODY)

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["summary"]["totalResults"] == 2
    assert payload["summary"]["sourceBreakdown"] == {"web": 1, "academic": 1}
    first = payload["data"][0]
    assert {"id", "title", "url", "relevanceScore", "credibilityScore", "source"} <= set(first)
    assert payload["enrichment"]["status"] == "disabled"
    assert {d["category"] for d in payload["diagnostics"]} == {"web", "academic"}


def test_missing_fields_are_400():
    with TestClient(create_app(_real_orchestrator())) as client:
        response = client.post("/api/v1/web-research", json={"topic": "x"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["errorCode"] == InvalidInputError.error_code


def test_empty_topic_is_400():
    with TestClient(create_app(_real_orchestrator())) as client:
        response = client.post("/api/v1/web-research", json={**BODY, "topic": "  "})

    assert response.status_code == 400
    assert "empty" in response.json()["error"]


def test_all_sources_failed_is_502():
    app = create_app(_failing_orchestrator(AllSourcesFailedError("All sources failed or timed out")))
    with TestClient(app) as client:
        response = client.post("/api/v1/web-research", json=BODY)

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "error": "All sources failed or timed out",
        "errorCode": "WR_SOURCE_002",
    }


def test_unexpected_error_is_500():
    app = create_app(_failing_orchestrator(RuntimeError("kaboom")))
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/v1/web-research", json=BODY)

    assert response.status_code == 500
    assert response.json()["success"] is False


def test_health():
    with TestClient(create_app(_real_orchestrator())) as client:
        response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_cors_preflight():
    with TestClient(create_app(_real_orchestrator())) as client:
        response = client.options(
            "/api/v1/web-research",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


@pytest.mark.parametrize(
    "error,status",
    [
        (InvalidInputError("bad"), 400),
        (AllSourcesFailedError("none"), 502),
        (RuntimeError("x"), 500),
    ],
)
def test_status_mapping(error, status):
    assert status_for(error) == status
