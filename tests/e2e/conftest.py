from collections.abc import AsyncIterator

import pytest_asyncio

from webresearch.core.bootstrap import build_orchestrator
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)


@pytest_asyncio.fixture
async def orchestrator() -> AsyncIterator[ResearchAggregationOrchestrator]:
    """Real orchestrator wired from .env; for e2e/integration suites only."""
    instance = build_orchestrator()
    try:
        yield instance
    finally:
        await instance.close()
