"""Query planner: expands a topic (and optional context) into per-source queries."""

import logging
from datetime import date

from webresearch.contracts.research_v1 import SourceCategory, category_priority
from webresearch.core.errors import InvalidInputError
from webresearch.orchestrators.research.constants import (
    CONTEXT_WORD_LIMIT,
    DEFAULT_MAX_QUERIES,
)
from webresearch.orchestrators.research.models import SearchQuery

logger = logging.getLogger(__name__)


def _context_words(context: str | None) -> str:
    if not context:
        return ""
    return " ".join(context.split()[:CONTEXT_WORD_LIMIT])


class QueryPlanner:
    """Deterministic planner. The reference year is fixed per instance."""

    def __init__(
        self, max_queries: int = DEFAULT_MAX_QUERIES, year: int | None = None
    ) -> None:
        self._max_queries = max(1, max_queries)
        self._year = year if year is not None else date.today().year

    def _templates(
        self, category: SourceCategory, topic: str, context_words: str
    ) -> list[str]:
        if category == SourceCategory.WEB:
            queries = [
                f'"{topic}" research {self._year} {self._year + 1}',
                f"{topic} latest developments breakthrough",
                f"{topic} industry analysis market research",
                f"{topic} academic study findings",
                f"{topic} technology trends innovation",
            ]
            if context_words:
                queries.append(f"{topic} {context_words}")
            return queries
        if category == SourceCategory.ACADEMIC:
            queries = [topic]
            if context_words:
                queries.append(f"{topic} {context_words}")
            return queries
        if category == SourceCategory.PATENT:
            return [topic]
        if category == SourceCategory.FINANCIAL:
            return [f"{topic} market investment outlook"]
        return [topic]

    def plan(
        self,
        topic: str,
        categories: list[SourceCategory],
        context: str | None = None,
    ) -> list[SearchQuery]:
        """Return the ordered query list; raises InvalidInputError on bad input."""
        topic = (topic or "").strip()
        if not topic:
            raise InvalidInputError("Topic must not be empty")
        if not categories:
            raise InvalidInputError(
                "At least one source category must be enabled",
                context={"sources": []},
            )

        context_words = _context_words(context)
        ordered = sorted(set(categories), key=lambda c: category_priority(c.value))

        per_category: list[list[SearchQuery]] = []
        for category in ordered:
            seen: set[str] = set()
            queries: list[SearchQuery] = []
            for text in self._templates(category, topic, context_words):
                key = text.lower()
                if key in seen:
                    continue
                seen.add(key)
                queries.append(SearchQuery(text=text, category=category))
            per_category.append(queries)

        # Round-robin so a tight budget still covers every category.
        planned: list[SearchQuery] = []
        depth = max(len(q) for q in per_category)
        for i in range(depth):
            for queries in per_category:
                if i < len(queries):
                    planned.append(queries[i])
        # Every enabled category keeps at least its first query.
        planned = planned[: max(self._max_queries, len(per_category))]

        logger.debug(
            "Planned %s queries for %s categories (topic=%r)",
            len(planned),
            len(ordered),
            topic[:80],
        )
        return planned
