from __future__ import annotations

from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from webresearch.contracts.research_v1 import RawResult, ScoredResult, SourceCategory
from webresearch.orchestrators.research.scoring import (
    ResultScorer,
    deduplicate_results,
    heuristic_credibility,
    lexical_relevance,
    normalize_url,
    order_results,
    result_id,
    title_jaccard,
)


def _raw(title, url, source=SourceCategory.WEB, **kwargs) -> RawResult:
    return RawResult(title=title, url=url, source=source, **kwargs)


def _scored(
    title,
    url,
    relevance,
    credibility,
    source=SourceCategory.WEB,
    publish_date=None,
) -> ScoredResult:
    return ScoredResult(
        id=result_id(source.value, title, url),
        title=title,
        url=url,
        source=source,
        relevance_score=relevance,
        credibility_score=credibility,
        publish_date=publish_date,
    )


class TestNormalizeUrl:
    def test_strips_scheme_www_fragment_and_trailing_slash(self):
        assert normalize_url("https://www.Example.com/Paper/#section") == "example.com/Paper"

    def test_http_and_https_match(self):
        assert normalize_url("http://example.com/a") == normalize_url("https://example.com/a/")

    def test_drops_tracking_params_and_sorts_the_rest(self):
        assert (
            normalize_url("https://example.com/a?utm_source=x&b=2&a=1&fbclid=z")
            == "example.com/a?a=1&b=2"
        )

    @pytest.mark.parametrize("url", ["", "   ", "https://"])
    def test_empty_when_unusable(self, url):
        assert normalize_url(url) == ""


def test_title_jaccard_ignores_case_and_punctuation():
    assert title_jaccard("Solid-State Batteries: A Review", "solid state batteries a review") == 1.0
    assert title_jaccard("", "anything") == 0.0


def test_result_id_is_stable_across_equivalent_urls():
    assert result_id("web", "A", "https://www.example.com/x/") == result_id(
        "academic", "B", "http://example.com/x"
    )
    assert result_id("web", "Same title", "") != result_id("patent", "Same title", "")


class TestScoreNormalization:
    def test_adapter_estimates_are_clamped(self):
        scorer = ResultScorer()
        high = scorer.score(
            _raw("t", "https://a.com", relevance_estimate=1.7, credibility_estimate=3.0), "t"
        )
        low = scorer.score(
            _raw("t", "https://b.com", relevance_estimate=-0.4, credibility_estimate=-1.0), "t"
        )
        assert (high.relevance_score, high.credibility_score) == (1.0, 1.0)
        assert (low.relevance_score, low.credibility_score) == (0.0, 0.0)

    def test_lexical_relevance_prefers_title_hits(self):
        in_title = _raw("Quantum computing error correction", "https://a.com")
        in_snippet = _raw("Unrelated", "https://b.com", snippet="notes on quantum computing")
        absent = _raw("Gardening tips", "https://c.com")
        topic = "quantum computing"
        assert lexical_relevance(in_title, topic) == 1.0
        assert 0.0 < lexical_relevance(in_snippet, topic) < 1.0
        assert lexical_relevance(absent, topic) == 0.0

    def test_high_trust_domains_get_higher_credibility(self):
        gov = heuristic_credibility(_raw("x", "https://energy.gov/report"))
        com = heuristic_credibility(_raw("x", "https://blog.example.com/post"))
        assert gov >= 0.9
        assert com == pytest.approx(0.6)

    def test_category_prior_applies_without_estimate(self):
        patent = heuristic_credibility(_raw("x", "https://example.com", SourceCategory.PATENT))
        assert patent == pytest.approx(0.8)


class TestOrdering:
    def test_composite_descending(self):
        results = [
            _scored("a", "https://a.com", 0.9, 0.8),
            _scored("b", "https://b.com", 0.7, 0.8),
            _scored("c", "https://c.com", 0.95, 0.8),
        ]
        assert [r.title for r in order_results(results)] == ["c", "a", "b"]

    def test_ties_break_on_newer_date_then_category(self):
        old = _scored("old", "https://a.com", 0.5, 0.5, publish_date=date(2020, 1, 1))
        new = _scored("new", "https://b.com", 0.5, 0.5, publish_date=date(2024, 1, 1))
        undated_web = _scored("w", "https://c.com", 0.5, 0.5)
        undated_patent = _scored("p", "https://d.com", 0.5, 0.5, SourceCategory.PATENT)
        ordered = order_results([undated_web, old, undated_patent, new])
        assert [r.title for r in ordered] == ["new", "old", "p", "w"]

    def test_order_does_not_depend_on_input_order(self):
        results = [
            _scored(f"t{i}", f"https://s{i}.com", 0.5, 0.5) for i in range(6)
        ]
        assert order_results(results) == order_results(list(reversed(results)))


class TestDeduplication:
    def test_same_url_keeps_higher_composite(self):
        weak = _scored("Title one", "https://example.com/p?utm_source=a", 0.4, 0.6)
        strong = _scored("Another title", "https://www.example.com/p", 0.9, 0.6)
        kept = deduplicate_results([weak, strong])
        assert kept == [strong]

    def test_near_identical_titles_collapse(self):
        a = _scored("Solid State Batteries Review", "https://a.com/1", 0.8, 0.8)
        b = _scored("solid-state batteries review", "https://b.com/2", 0.6, 0.8)
        assert deduplicate_results([a, b]) == [a]

    def test_distinct_results_survive(self):
        a = _scored("Solid state batteries", "https://a.com/1", 0.8, 0.8)
        b = _scored("Sodium ion cathodes", "https://b.com/2", 0.6, 0.8)
        assert len(deduplicate_results([a, b])) == 2

    def test_empty_urls_do_not_match_each_other(self):
        a = _scored("Alpha findings", "", 0.8, 0.8)
        b = _scored("Beta results", "", 0.6, 0.8)
        assert len(deduplicate_results([a, b])) == 2


def test_score_and_rank_scenario():
    scorer = ResultScorer()
    raw = [
        _raw(f"paper {r}", f"https://journal.org/{i}", SourceCategory.ACADEMIC,
             relevance_estimate=r, credibility_estimate=0.85)
        for i, r in enumerate([0.9, 0.7, 0.95])
    ]
    ranked = scorer.score_and_rank(raw, "quantum computing")
    assert [r.relevance_score for r in ranked] == [0.95, 0.9, 0.7]


def test_score_and_rank_empty():
    assert ResultScorer().score_and_rank([], "anything") == []


WORDS = ["solar", "cell", "battery", "review", "grid", "storage"]
HOSTS = ["a.com", "b.org", "www.a.com", "c.edu"]

raw_results = st.builds(
    RawResult,
    title=st.lists(st.sampled_from(WORDS), min_size=1, max_size=4).map(" ".join),
    url=st.tuples(st.sampled_from(HOSTS), st.sampled_from(["", "/x", "/y/"])).map(
        lambda t: f"https://{t[0]}{t[1]}"
    ),
    source=st.sampled_from(list(SourceCategory)),
    relevance_estimate=st.one_of(
        st.none(), st.floats(min_value=-5, max_value=5, allow_nan=False)
    ),
    credibility_estimate=st.one_of(
        st.none(), st.floats(min_value=-5, max_value=5, allow_nan=False)
    ),
)


@pytest.mark.property
@given(results=st.lists(raw_results, max_size=12))
def test_scores_bounded_and_dedup_idempotent(results):
    scorer = ResultScorer()
    ranked = scorer.score_and_rank(results, "solar battery storage")

    for r in ranked:
        assert 0.0 <= r.relevance_score <= 1.0
        assert 0.0 <= r.credibility_score <= 1.0

    again = scorer.rank(ranked)
    assert again == ranked
