"""Optional LLM enrichment: short insights and small bounded score uplifts for the top results.

Annotations are matched to results by id. Any failure (disabled, unconfigured,
unreachable, unparseable) raises EnrichmentUnavailableError inside the stage and
surfaces as state=skipped with the pre-enrichment results unchanged.
"""

import json
import math
import re
from typing import Any

from webresearch.contracts.research_v1 import ScoredResult
from webresearch.core.errors import EnrichmentUnavailableError
from webresearch.core.logger import logger
from webresearch.core.prompts import load_prompt, render_prompt
from webresearch.llm.openai_client import ChatCompletionClient
from webresearch.observability import traceable
from webresearch.orchestrators.research.constants import (
    ENRICHMENT_MAX_TOKENS,
    ENRICHMENT_MAX_UPLIFT,
    ENRICHMENT_SAMPLE_SIZE,
    ENRICHMENT_TEMPERATURE,
    EnrichmentState,
)
from webresearch.orchestrators.research.models import EnrichmentOutcome
from webresearch.orchestrators.research.scoring import order_results

MAX_INSIGHT_CHARS = 500


def _extract_json(text: str) -> str:
    """Take first ```json ... ``` block or bare JSON from text."""
    text = (text or "").strip()
    if not text:
        return "{}"
    match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _parse_json_object(text: str, default: dict[str, Any]) -> dict[str, Any]:
    try:
        cleaned = _extract_json(text)
        cleaned = re.sub(r",\s*}", "}", cleaned)
        cleaned = re.sub(r",\s*]", "]", cleaned)
        out = json.loads(cleaned)
        return out if isinstance(out, dict) else default
    except (json.JSONDecodeError, TypeError):
        return default


def bounded_uplift(value: Any) -> float:
    """Coerce a model-supplied uplift into [0, ENRICHMENT_MAX_UPLIFT]; junk becomes 0."""
    try:
        uplift = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(uplift):
        return 0.0
    return min(ENRICHMENT_MAX_UPLIFT, max(0.0, uplift))


def apply_annotations(
    results: list[ScoredResult], annotations: dict[str, Any]
) -> tuple[list[ScoredResult], int]:
    """Attach insights and uplifts by id. Unknown ids are ignored; scores never decrease."""
    updated: list[ScoredResult] = []
    annotated = 0
    for r in results:
        note = annotations.get(r.id)
        if not isinstance(note, dict):
            updated.append(r)
            continue
        insight = note.get("insight")
        insight = str(insight).strip()[:MAX_INSIGHT_CHARS] if insight else None
        relevance = min(1.0, r.relevance_score + bounded_uplift(note.get("relevance_uplift")))
        credibility = min(
            1.0, r.credibility_score + bounded_uplift(note.get("credibility_uplift"))
        )
        updated.append(
            r.model_copy(
                update={
                    "relevance_score": relevance,
                    "credibility_score": credibility,
                    "insight": insight or r.insight,
                }
            )
        )
        annotated += 1
    return updated, annotated


def _sample_payload(sample: list[ScoredResult]) -> str:
    return json.dumps(
        [
            {
                "id": r.id,
                "title": r.title,
                "url": r.url,
                "snippet": r.snippet[:300],
                "source": r.source.value,
                "relevance": round(r.relevance_score, 3),
                "credibility": round(r.credibility_score, 3),
            }
            for r in sample
        ],
        ensure_ascii=False,
        indent=2,
    )


class EnrichmentStage:
    """Annotates the top-N results through an OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        client: ChatCompletionClient | None = None,
        enabled: bool = True,
        sample_size: int = ENRICHMENT_SAMPLE_SIZE,
    ):
        self._client = client
        self._enabled = enabled
        self._sample_size = max(1, sample_size)
        self._prompt = load_prompt("enrichment")

    def _get_client(self) -> ChatCompletionClient:
        if self._client is None:
            self._client = ChatCompletionClient()
        return self._client

    async def _annotate(
        self, sample: list[ScoredResult], topic: str, context: str | None
    ) -> tuple[list[ScoredResult], int]:
        client = self._get_client()
        if not client.is_configured:
            raise EnrichmentUnavailableError("Enrichment API key or model is not configured")
        prompt = render_prompt(
            self._prompt,
            topic=topic,
            context=(context or "").strip() or "(none)",
            results=_sample_payload(sample),
        )
        try:
            response = await client.generate(
                prompt,
                max_tokens=ENRICHMENT_MAX_TOKENS,
                temperature=ENRICHMENT_TEMPERATURE,
            )
        except Exception as e:
            raise EnrichmentUnavailableError(
                f"Enrichment call failed: {type(e).__name__}", cause=e
            ) from e
        text = response.text if isinstance(response.text, str) else ""
        annotations = _parse_json_object(text, {})
        if not annotations:
            raise EnrichmentUnavailableError(
                "Enrichment reply was not a JSON object",
                context={"preview": text[:200]},
            )
        try:
            return apply_annotations(sample, annotations)
        except Exception as e:
            raise EnrichmentUnavailableError(
                f"Enrichment annotations could not be applied: {type(e).__name__}", cause=e
            ) from e

    @traceable(name="research_enrichment", run_type="llm")
    async def enrich(
        self, results: list[ScoredResult], topic: str, context: str | None = None
    ) -> EnrichmentOutcome:
        if not self._enabled:
            return EnrichmentOutcome(results=list(results), state=EnrichmentState.DISABLED)
        if not results:
            return EnrichmentOutcome(
                results=[], state=EnrichmentState.SKIPPED, reason="no results to enrich"
            )

        sample = results[: self._sample_size]
        try:
            enriched_sample, annotated = await self._annotate(sample, topic, context)
        except EnrichmentUnavailableError as e:
            logger.warning(f"Enrichment skipped: {e.message}")
            return EnrichmentOutcome(
                results=list(results), state=EnrichmentState.SKIPPED, reason=e.message
            )

        merged = order_results(enriched_sample + list(results[self._sample_size :]))
        logger.info(f"Enrichment: annotated {annotated}/{len(sample)} results")
        return EnrichmentOutcome(
            results=merged,
            state=EnrichmentState.APPLIED,
            model=self._client.last_model_used if self._client else None,
            annotated=annotated,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
