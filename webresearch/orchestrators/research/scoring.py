"""Scorer/ranker: normalizes scores, collapses duplicates, and orders results.

Adapter estimates are clamped and kept when present; otherwise relevance comes
from lexical overlap with the topic/context and credibility from the host and
category. Duplicates (same normalized URL, or titles with token-set Jaccard at
or above the threshold) collapse into the higher-ranked entry.
"""

import hashlib
import logging
import re
from urllib.parse import parse_qsl, urlencode, urlparse

from webresearch.contracts.research_v1 import (
    RawResult,
    ScoredResult,
    SourceCategory,
    category_priority,
)
from webresearch.orchestrators.research.constants import TITLE_JACCARD_THRESHOLD

logger = logging.getLogger(__name__)

HIGH_TRUST_TLDS = (".gov", ".edu", ".int")

CATEGORY_CREDIBILITY_PRIOR: dict[str, float] = {
    SourceCategory.ACADEMIC.value: 0.85,
    SourceCategory.PATENT.value: 0.8,
    SourceCategory.FINANCIAL.value: 0.7,
    SourceCategory.WEB.value: 0.6,
}

_TRACKING_PARAMS = {"fbclid", "gclid", "ref", "ref_src", "mc_cid", "mc_eid"}

_STOP_WORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in",
    "into", "is", "it", "of", "on", "or", "the", "to", "with", "about",
}


def _tokenize(text: str) -> list[str]:
    return re.findall(r"[a-z0-9]+", (text or "").lower())


def _content_tokens(text: str) -> set[str]:
    return {t for t in _tokenize(text) if t not in _STOP_WORDS}


def clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def normalize_url(url: str) -> str:
    """Canonical form used for URL-equality dedup ('' when unparseable)."""
    url = (url or "").strip()
    if not url:
        return ""
    if "://" not in url:
        url = "https://" + url
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    if not host:
        return ""
    path = parsed.path.rstrip("/")
    query = [
        (k, v)
        for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if not k.lower().startswith("utm_") and k.lower() not in _TRACKING_PARAMS
    ]
    query.sort()
    normalized = f"{host}{path}"
    if parsed.port and parsed.port not in (80, 443):
        normalized = f"{host}:{parsed.port}{path}"
    if query:
        normalized += "?" + urlencode(query)
    return normalized


def title_jaccard(a: str, b: str) -> float:
    ta, tb = set(_tokenize(a)), set(_tokenize(b))
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


def result_id(source: str, title: str, url: str) -> str:
    key = normalize_url(url) or f"{source}|{' '.join(_tokenize(title))}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]


def lexical_relevance(result: RawResult, topic: str, context: str | None = None) -> float:
    """Share of topic (and context) terms found in the result, title-weighted."""
    topic_terms = _content_tokens(topic)
    if not topic_terms:
        return 0.0
    title_terms = _content_tokens(result.title)
    body_terms = _content_tokens(result.snippet) | _content_tokens(result.content or "")

    hits = 0.0
    for term in topic_terms:
        if term in title_terms:
            hits += 1.0
        elif term in body_terms:
            hits += 0.6
    score = hits / len(topic_terms)

    context_terms = _content_tokens(context or "") - topic_terms
    if context_terms:
        ctx_hits = len(context_terms & (title_terms | body_terms))
        score = 0.85 * score + 0.15 * (ctx_hits / len(context_terms))
    return clamp(score)


def heuristic_credibility(result: RawResult) -> float:
    score = CATEGORY_CREDIBILITY_PRIOR.get(result.source.value, 0.5)
    normalized = normalize_url(result.url)
    if not normalized:
        return clamp(score - 0.2)
    host = normalized.split("/", 1)[0].split(":", 1)[0]
    if any(host.endswith(tld) for tld in HIGH_TRUST_TLDS):
        score = max(score, 0.9)
    if not result.url.lower().startswith("https://"):
        score -= 0.05
    return clamp(score)


def rank_key(result: ScoredResult) -> tuple:
    """Composite desc, newer first, category priority, then URL/title for totality."""
    published = result.publish_date.toordinal() if result.publish_date else 0
    return (
        -result.composite_score,
        -published,
        category_priority(result.source.value),
        normalize_url(result.url),
        result.title,
        result.id,
    )


def order_results(results: list[ScoredResult]) -> list[ScoredResult]:
    return sorted(results, key=rank_key)


def _is_duplicate(a: ScoredResult, b: ScoredResult) -> bool:
    url_a, url_b = normalize_url(a.url), normalize_url(b.url)
    if url_a and url_a == url_b:
        return True
    return title_jaccard(a.title, b.title) >= TITLE_JACCARD_THRESHOLD


def deduplicate_results(results: list[ScoredResult]) -> list[ScoredResult]:
    """Keep the best-ranked member of every duplicate group.

    Walks results in rank order and drops anything duplicating a kept entry,
    so the kept set has no duplicate pair and a second pass is a no-op.
    """
    kept: list[ScoredResult] = []
    for r in order_results(results):
        if any(_is_duplicate(r, k) for k in kept):
            continue
        kept.append(r)
    return kept


class ResultScorer:
    """Scores, deduplicates, and ranks raw results from all sources."""

    def score(
        self, result: RawResult, topic: str, context: str | None = None
    ) -> ScoredResult:
        if result.relevance_estimate is not None:
            relevance = clamp(result.relevance_estimate)
        else:
            relevance = lexical_relevance(result, topic, context)
        if result.credibility_estimate is not None:
            credibility = clamp(result.credibility_estimate)
        else:
            credibility = heuristic_credibility(result)
        return ScoredResult(
            id=result_id(result.source.value, result.title, result.url),
            title=result.title,
            url=result.url,
            snippet=result.snippet,
            content=result.content,
            publish_date=result.publish_date,
            source=result.source,
            relevance_score=relevance,
            credibility_score=credibility,
            metadata=dict(result.metadata),
        )

    def rank(self, results: list[ScoredResult], max_results: int | None = None) -> list[ScoredResult]:
        deduped = deduplicate_results(results)
        if max_results is not None:
            deduped = deduped[:max_results]
        return deduped

    def score_and_rank(
        self,
        results: list[RawResult],
        topic: str,
        context: str | None = None,
        max_results: int | None = None,
    ) -> list[ScoredResult]:
        if not results:
            return []
        scored = [self.score(r, topic, context) for r in results]
        ranked = self.rank(scored, max_results=max_results)
        logger.info(
            "Scoring: %s input -> %s ranked",
            len(results),
            len(ranked),
        )
        return ranked
