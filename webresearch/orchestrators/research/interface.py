"""Standard interface for source adapters used by the fan-out coordinator.

All adapters take a SearchQuery and a time budget and return RawResult lists.
Failures surface as SourceError; the coordinator never sees transport errors.
"""

from abc import ABC, abstractmethod

import httpx

from webresearch.contracts.research_v1 import RawResult, SourceCategory
from webresearch.core.errors import SourceError
from webresearch.orchestrators.research.constants import DEFAULT_RESULT_CAP
from webresearch.orchestrators.research.models import SearchQuery


class SourceAdapter(ABC):
    """Base class for all source adapters."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        result_cap: int = DEFAULT_RESULT_CAP,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.result_cap = max(1, result_cap)

    @abstractmethod
    def get_category(self) -> SourceCategory:
        """Category this adapter serves."""

    @abstractmethod
    async def _search(self, query: SearchQuery, budget: float) -> list[RawResult]:
        """Call the upstream API and normalize its payload."""

    async def fetch(self, query: SearchQuery, budget: float) -> list[RawResult]:
        """Fetch at most result_cap results for query within budget seconds."""
        category = self.get_category()
        try:
            results = await self._search(query, budget)
        except SourceError:
            raise
        except httpx.TimeoutException as e:
            raise SourceError(
                f"{category} request timed out", source=category.value, cause=e
            ) from e
        except httpx.HTTPStatusError as e:
            raise SourceError(
                f"{category} returned HTTP {e.response.status_code}",
                source=category.value,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise SourceError(
                f"{category} request failed: {e!s}", source=category.value, cause=e
            ) from e
        except (ValueError, KeyError, TypeError) as e:
            raise SourceError(
                f"{category} returned a malformed response: {e!s}",
                source=category.value,
                cause=e,
            ) from e
        return results[: self.result_cap]

    def _get_client(self, budget: float) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=budget, follow_redirects=True)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
