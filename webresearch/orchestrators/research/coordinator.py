"""Fan-out coordinator: runs every (category x query) adapter task concurrently.

Each task is bounded by a per-adapter timeout and a shared semaphore; the whole
fan-out is bounded by an overall deadline after which in-flight tasks are
cancelled. Results are merged in plan order once every task has settled, so
completion order never leaks into ranking.
"""

import asyncio
import time

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.errors import AllSourcesFailedError, SourceError
from webresearch.core.logger import logger
from webresearch.observability import traceable
from webresearch.orchestrators.research.constants import (
    DEFAULT_ADAPTER_TIMEOUT_SECONDS,
    DEFAULT_DEADLINE_SECONDS,
    DEFAULT_MAX_CONCURRENCY,
    TaskStatus,
)
from webresearch.orchestrators.research.interface import SourceAdapter
from webresearch.orchestrators.research.models import (
    FanOutResult,
    SearchQuery,
    SourceDiagnostic,
)

_TaskOutcome = tuple[list[RawResult], SourceDiagnostic]


class FanOutCoordinator:
    """Concurrent adapter execution with partial-failure collection."""

    def __init__(
        self,
        adapters: list[SourceAdapter],
        adapter_timeout: float = DEFAULT_ADAPTER_TIMEOUT_SECONDS,
        deadline: float = DEFAULT_DEADLINE_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._adapters: dict[SourceCategory, SourceAdapter] = {
            a.get_category(): a for a in adapters
        }
        self._adapter_timeout = adapter_timeout
        self._deadline = deadline
        self._max_concurrency = max(1, max_concurrency)

    def has_adapter(self, category: SourceCategory) -> bool:
        return category in self._adapters

    def pool_size(self, task_count: int) -> int:
        return max(1, min(task_count, self._max_concurrency))

    async def _run_one(
        self,
        semaphore: asyncio.Semaphore,
        adapter: SourceAdapter,
        query: SearchQuery,
    ) -> _TaskOutcome:
        category = query.category.value
        async with semaphore:
            t0 = time.monotonic()
            status = TaskStatus.OK
            error: str | None = None
            results: list[RawResult] = []
            try:
                results = await asyncio.wait_for(
                    adapter.fetch(query, self._adapter_timeout),
                    timeout=self._adapter_timeout,
                )
                if not results:
                    status = TaskStatus.EMPTY
            except asyncio.TimeoutError:
                status = TaskStatus.TIMEOUT
                error = f"timed out after {self._adapter_timeout:.1f}s"
            except SourceError as e:
                status = TaskStatus.ERROR
                error = e.message
            except Exception as e:
                # Adapter bugs must not take siblings down.
                status = TaskStatus.ERROR
                error = f"{type(e).__name__}: {e!s}"
                logger.warning("Adapter %s raised unexpectedly: %s", category, e)
            elapsed = time.monotonic() - t0

        logger.task_result(
            category, query.text, status.value, len(results), elapsed, error_reason=error
        )
        return results, SourceDiagnostic(
            category=category,
            query=query.text,
            status=status,
            result_count=len(results),
            elapsed_ms=round(elapsed * 1000, 1),
            error=error,
        )

    @traceable(name="research_fan_out", run_type="chain")
    async def run(self, queries: list[SearchQuery]) -> FanOutResult:
        """Execute all planned queries; raises AllSourcesFailedError if none succeed."""
        outcome = FanOutResult()
        runnable: list[tuple[int, SourceAdapter, SearchQuery]] = []
        missing: dict[int, SourceDiagnostic] = {}
        for idx, query in enumerate(queries):
            adapter = self._adapters.get(query.category)
            if adapter is None:
                missing[idx] = SourceDiagnostic(
                    category=query.category.value,
                    query=query.text,
                    status=TaskStatus.ERROR,
                    error=f"No adapter registered for '{query.category.value}'",
                )
                continue
            runnable.append((idx, adapter, query))

        semaphore = asyncio.Semaphore(self.pool_size(len(runnable)))
        tasks: dict[int, asyncio.Task[_TaskOutcome]] = {
            idx: asyncio.create_task(self._run_one(semaphore, adapter, query))
            for idx, adapter, query in runnable
        }

        if tasks:
            _, pending = await asyncio.wait(tasks.values(), timeout=self._deadline)
            if pending:
                outcome.deadline_exceeded = True
                logger.warning(
                    "Deadline of %.1fs exceeded; abandoning %s in-flight tasks",
                    self._deadline,
                    len(pending),
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        for idx, query in enumerate(queries):
            if idx in missing:
                outcome.diagnostics.append(missing[idx])
                continue
            task = tasks[idx]
            if task.cancelled():
                outcome.diagnostics.append(
                    SourceDiagnostic(
                        category=query.category.value,
                        query=query.text,
                        status=TaskStatus.CANCELLED,
                        error="abandoned at aggregation deadline",
                    )
                )
                continue
            results, diagnostic = task.result()
            outcome.results.extend(results)
            outcome.diagnostics.append(diagnostic)

        if outcome.succeeded_tasks == 0:
            raise AllSourcesFailedError(
                "All sources failed or timed out",
                context={"diagnostics": [d.to_dict() for d in outcome.diagnostics]},
            )
        return outcome

    async def close(self) -> None:
        for adapter in self._adapters.values():
            await adapter.close()
