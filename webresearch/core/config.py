"""Configuration from environment variables (.env)."""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str = "") -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


@dataclass
class Config:
    project_root: Path
    logs_dir: Path
    data_dir: Path
    prompts_dir: Path
    searxng_url: str
    openalex_email: str
    patentsview_api_key: str
    enrichment_enabled: bool
    enrichment_api_key: str
    enrichment_base_url: str
    enrichment_models: list[str]  # Model IDs to try in order (fallback on 5xx/429)
    adapter_timeout_seconds: float
    aggregation_deadline_seconds: float
    max_concurrency: int
    adapter_result_cap: int
    max_queries: int
    artifact_store: str  # jsonl | supabase | none
    artifacts_file: Path
    supabase_url: str
    supabase_service_role_key: str
    api_host: str
    api_port: int
    cors_origins: list[str]

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        logs_dir = Path(os.getenv("WEBRESEARCH_LOGS_DIR", str(project_root / "logs")))
        data_dir = project_root / "data"
        return cls(
            project_root=project_root,
            logs_dir=logs_dir,
            data_dir=data_dir,
            prompts_dir=Path(__file__).parent.parent / "prompts",
            searxng_url=os.getenv("SEARXNG_URL", "http://localhost:6002"),
            openalex_email=os.getenv("OPENALEX_EMAIL", ""),
            patentsview_api_key=os.getenv("PATENTSVIEW_API_KEY", ""),
            enrichment_enabled=_env_bool("ENRICHMENT_ENABLED", True),
            enrichment_api_key=os.getenv("ENRICHMENT_API_KEY", "") or os.getenv("OPENAI_API_KEY", ""),
            enrichment_base_url=os.getenv("ENRICHMENT_BASE_URL", "https://api.openai.com/v1"),
            enrichment_models=_env_list("ENRICHMENT_MODELS", "gpt-4o-mini"),
            adapter_timeout_seconds=float(os.getenv("ADAPTER_TIMEOUT_SECONDS", "10")),
            aggregation_deadline_seconds=float(os.getenv("AGGREGATION_DEADLINE_SECONDS", "30")),
            max_concurrency=int(os.getenv("MAX_CONCURRENCY", "25")),
            adapter_result_cap=int(os.getenv("ADAPTER_RESULT_CAP", "20")),
            max_queries=int(os.getenv("MAX_QUERIES", "12")),
            artifact_store=os.getenv("ARTIFACT_STORE", "jsonl").strip().lower(),
            artifacts_file=Path(os.getenv("ARTIFACTS_FILE", str(data_dir / "research_artifacts.jsonl"))),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
        )

    def validate(self) -> list[str]:
        errors = []
        if self.adapter_timeout_seconds <= 0:
            errors.append("ADAPTER_TIMEOUT_SECONDS must be positive")
        if self.aggregation_deadline_seconds <= 0:
            errors.append("AGGREGATION_DEADLINE_SECONDS must be positive")
        if self.max_concurrency < 1:
            errors.append("MAX_CONCURRENCY must be at least 1")
        if self.adapter_result_cap < 1:
            errors.append("ADAPTER_RESULT_CAP must be at least 1")
        if self.artifact_store not in ("jsonl", "supabase", "none"):
            errors.append(f"Unknown ARTIFACT_STORE: {self.artifact_store}")
        elif self.artifact_store == "supabase" and not (
            self.supabase_url and self.supabase_service_role_key
        ):
            errors.append("ARTIFACT_STORE=supabase requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
        if self.enrichment_enabled and not self.enrichment_api_key:
            errors.append("Enrichment enabled but no ENRICHMENT_API_KEY/OPENAI_API_KEY set (will be skipped)")
        return errors


config = Config.load()
