from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from webresearch.contracts.research_v1 import RawResult, ResearchRequest, SourceCategory
from webresearch.core.errors import (
    AllSourcesFailedError,
    ArtifactStoreError,
    InvalidInputError,
    SourceError,
)
from webresearch.llm.openai_client import LLMResponse
from webresearch.orchestrators.research.assembler import ResultAssembler
from webresearch.orchestrators.research.coordinator import FanOutCoordinator
from webresearch.orchestrators.research.enrichment import EnrichmentStage
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)
from webresearch.orchestrators.research.planner import QueryPlanner
from webresearch.orchestrators.research.scoring import ResultScorer
from webresearch.storage.artifacts import ArtifactRecord, ArtifactStore


class StaticAdapter(SourceAdapter):
    def __init__(self, category, results=None, error=None):
        super().__init__()
        self.category = category
        self.results = results or []
        self.error = error
        self.calls = 0

    def get_category(self):
        return self.category

    async def _search(self, query, budget):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.results)


class RecordingStore(ArtifactStore):
    def __init__(self, fail: bool = False):
        self.records: list[ArtifactRecord] = []
        self.fail = fail

    async def write(self, record: ArtifactRecord) -> None:
        if self.fail:
            raise ArtifactStoreError("database unavailable")
        self.records.append(record)


def _orchestrator(adapters, store=None, enrichment=None) -> ResearchAggregationOrchestrator:
    return ResearchAggregationOrchestrator(
        planner=QueryPlanner(year=2025),
        coordinator=FanOutCoordinator(adapters, adapter_timeout=1, deadline=5),
        scorer=ResultScorer(),
        assembler=ResultAssembler(store or RecordingStore()),
        enrichment=enrichment,
    )


def _request(topic="quantum computing", sources=("paper",), description=None):
    return ResearchRequest(
        topic=topic,
        description=description,
        sources=list(sources),
        project_id="proj-1",
        stage_id="stage-1",
    )


def _paper(title, url, relevance, credibility=0.85):
    return RawResult(
        title=title,
        url=url,
        source=SourceCategory.ACADEMIC,
        relevance_estimate=relevance,
        credibility_estimate=credibility,
    )


@pytest.mark.asyncio
async def test_results_ordered_by_composite_score():
    adapter = StaticAdapter(
        SourceCategory.ACADEMIC,
        [
            _paper("Qubit decoherence", "https://j.org/a", 0.9),
            _paper("Error mitigation", "https://j.org/b", 0.7),
            _paper("Logical qubits", "https://j.org/c", 0.95),
        ],
    )
    store = RecordingStore()

    report = await _orchestrator([adapter], store).aggregate(_request())

    assert [r.relevance_score for r in report.results] == [0.95, 0.9, 0.7]
    assert report.summary.total_results == 3
    assert report.summary.source_breakdown == {"academic": 3}
    assert report.sources == ["academic"]
    assert report.persisted is True


@pytest.mark.asyncio
async def test_empty_topic_invokes_no_adapter():
    adapter = StaticAdapter(SourceCategory.WEB, [])
    store = RecordingStore()

    with pytest.raises(InvalidInputError):
        await _orchestrator([adapter], store).aggregate(_request(topic="", sources=["web"]))

    assert adapter.calls == 0
    assert store.records == []


@pytest.mark.asyncio
async def test_unknown_sources_only_is_invalid_input():
    adapter = StaticAdapter(SourceCategory.WEB, [])
    with pytest.raises(InvalidInputError):
        await _orchestrator([adapter]).aggregate(_request(sources=["tiktok"]))
    assert adapter.calls == 0


@pytest.mark.asyncio
async def test_duplicate_across_adapters_merges_to_higher_score():
    shared_title = "Room temperature superconductors"
    shared_url = "https://science.org/rts"
    web = StaticAdapter(
        SourceCategory.WEB,
        [RawResult(title=shared_title, url=shared_url, source=SourceCategory.WEB,
                   relevance_estimate=0.5, credibility_estimate=0.6)],
    )
    paper = StaticAdapter(
        SourceCategory.ACADEMIC, [_paper(shared_title, shared_url, 0.9)]
    )

    report = await _orchestrator([web, paper]).aggregate(
        _request(topic="superconductors", sources=["web", "paper"])
    )

    assert len(report.results) == 1
    kept = report.results[0]
    assert kept.source == SourceCategory.ACADEMIC
    assert kept.composite_score == pytest.approx(0.6 * 0.9 + 0.4 * 0.85)


@pytest.mark.asyncio
async def test_all_sources_failing_raises():
    down = StaticAdapter(SourceCategory.WEB, error=SourceError("down", source="web"))
    store = RecordingStore()

    with pytest.raises(AllSourcesFailedError):
        await _orchestrator([down], store).aggregate(_request(sources=["web"]))

    assert store.records == []


@pytest.mark.asyncio
async def test_partial_failure_still_reports():
    down = StaticAdapter(SourceCategory.PATENT, error=SourceError("down", source="patent"))
    paper = StaticAdapter(SourceCategory.ACADEMIC, [_paper("Result", "https://j.org/x", 0.8)])

    report = await _orchestrator([down, paper]).aggregate(
        _request(sources=["paper", "patent", "tiktok"])
    )

    statuses = {d["category"]: d["status"] for d in report.diagnostics}
    assert statuses == {"academic": "ok", "patent": "error", "tiktok": "ignored"}
    assert len(report.results) == 1


@pytest.mark.asyncio
async def test_enrichment_failure_keeps_scores():
    adapter = StaticAdapter(
        SourceCategory.ACADEMIC,
        [_paper("A", "https://j.org/a", 0.9), _paper("B", "https://j.org/b", 0.6)],
    )
    failing = SimpleNamespace(
        is_configured=True,
        generate=AsyncMock(side_effect=RuntimeError("service down")),
        last_model_used=None,
        close=AsyncMock(),
    )

    report = await _orchestrator(
        [adapter], enrichment=EnrichmentStage(client=failing)
    ).aggregate(_request())

    assert report.enrichment["status"] == "skipped"
    assert [(r.relevance_score, r.credibility_score) for r in report.results] == [
        (0.9, 0.85),
        (0.6, 0.85),
    ]
    assert all(r.insight is None for r in report.results)


@pytest.mark.asyncio
async def test_enrichment_success_annotates():
    adapter = StaticAdapter(SourceCategory.ACADEMIC, [_paper("A", "https://j.org/a", 0.9)])
    scored_id = ResultScorer().score(adapter.results[0], "quantum computing").id
    client = SimpleNamespace(
        is_configured=True,
        generate=AsyncMock(
            return_value=LLMResponse(
                text=f'{{"{scored_id}": {{"insight": "Key survey.", "relevance_uplift": 0.03}}}}',
                model="gpt-4o-mini",
            )
        ),
        last_model_used="gpt-4o-mini",
        close=AsyncMock(),
    )

    report = await _orchestrator(
        [adapter], enrichment=EnrichmentStage(client=client)
    ).aggregate(_request())

    assert report.enrichment == {"status": "applied", "annotated": 1, "model": "gpt-4o-mini"}
    assert report.results[0].insight == "Key survey."
    assert report.results[0].relevance_score == pytest.approx(0.93)


@pytest.mark.asyncio
async def test_exactly_one_artifact_write():
    adapter = StaticAdapter(
        SourceCategory.ACADEMIC,
        [_paper("A", "https://j.org/a", 0.8, 0.6), _paper("B", "https://j.org/b", 0.4, 0.6)],
    )
    store = RecordingStore()

    report = await _orchestrator([adapter], store).aggregate(
        _request(description="error correction thresholds")
    )

    assert len(store.records) == 1
    record = store.records[0]
    assert record.stage_id == "stage-1"
    assert record.name == "Web Research Results - quantum computing"
    assert record.type == "web_research"
    assert record.metadata["resultCount"] == 2
    assert record.metadata["projectId"] == "proj-1"
    assert record.metadata["qualityScore"] == pytest.approx(0.6)
    assert record.metadata["timestamp"] == report.generated_at


@pytest.mark.asyncio
async def test_store_failure_does_not_fail_request():
    adapter = StaticAdapter(SourceCategory.ACADEMIC, [_paper("A", "https://j.org/a", 0.8)])

    report = await _orchestrator([adapter], RecordingStore(fail=True)).aggregate(_request())

    assert report.persisted is False
    assert len(report.results) == 1


@pytest.mark.asyncio
async def test_empty_results_give_zero_averages():
    adapter = StaticAdapter(SourceCategory.ACADEMIC, [])

    report = await _orchestrator([adapter]).aggregate(_request())

    assert report.results == []
    assert report.summary.average_relevance == 0.0
    assert report.summary.credibility_score == 0.0
    assert report.summary.average_quality == 0.0
