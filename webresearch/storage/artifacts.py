"""Provenance artifact store: one record per aggregation, keyed by pipeline stage.

JsonlArtifactStore appends to a local JSONL file; SupabaseArtifactStore inserts
into the research_artifacts table over PostgREST. Both raise ArtifactStoreError
on failure and leave the decision to absorb it to the caller.
"""

import asyncio
import json
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from webresearch.core.config import config
from webresearch.core.errors import ArtifactStoreError
from webresearch.core.logger import logger

SUPABASE_TABLE = "research_artifacts"


@dataclass
class ArtifactRecord:
    stage_id: str
    name: str
    type: str
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ArtifactStore(ABC):
    @abstractmethod
    async def write(self, record: ArtifactRecord) -> None:
        """Persist one record. Raises ArtifactStoreError."""

    async def close(self) -> None:
        return None


class NullArtifactStore(ArtifactStore):
    """ARTIFACT_STORE=none: accepts writes and drops them."""

    async def write(self, record: ArtifactRecord) -> None:
        logger.debug(f"Artifact store disabled; dropping record for stage {record.stage_id}")


class JsonlArtifactStore(ArtifactStore):
    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else config.artifacts_file
        self._lock = threading.Lock()

    def _append(self, line: str) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    async def write(self, record: ArtifactRecord) -> None:
        line = json.dumps(record.to_dict(), default=str, ensure_ascii=False)
        try:
            await asyncio.to_thread(self._append, line)
        except OSError as e:
            raise ArtifactStoreError(
                f"Could not append artifact to {self.path}",
                cause=e,
                context={"stage_id": record.stage_id},
            ) from e

    def read_all(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        records: list[dict[str, Any]] = []
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    records.append(json.loads(line))
        return records


class SupabaseArtifactStore(ArtifactStore):
    def __init__(
        self,
        url: str | None = None,
        service_role_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.url = (url if url is not None else config.supabase_url).rstrip("/")
        self.service_role_key = (
            service_role_key if service_role_key is not None else config.supabase_service_role_key
        )
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{SUPABASE_TABLE}"

    async def write(self, record: ArtifactRecord) -> None:
        if not self.url or not self.service_role_key:
            raise ArtifactStoreError("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is not configured")
        headers = {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }
        body = {
            "stage_id": record.stage_id,
            "name": record.name,
            "type": record.type,
            "metadata": record.metadata,
        }
        try:
            response = await self.client.post(
                self.endpoint, content=json.dumps(body, default=str), headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ArtifactStoreError(
                f"Supabase insert returned HTTP {e.response.status_code}",
                cause=e,
                context={"stage_id": record.stage_id, "body": e.response.text[:300]},
            ) from e
        except httpx.HTTPError as e:
            raise ArtifactStoreError(
                f"Supabase insert failed: {e!s}",
                cause=e,
                context={"stage_id": record.stage_id},
            ) from e

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def create_artifact_store(kind: str | None = None) -> ArtifactStore:
    kind = (kind or config.artifact_store).strip().lower()
    if kind == "jsonl":
        return JsonlArtifactStore()
    if kind == "supabase":
        return SupabaseArtifactStore()
    if kind == "none":
        return NullArtifactStore()
    raise ValueError(f"Unknown artifact store: {kind}")
