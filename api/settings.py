# runtime configuration for health log analysis, read from the environment
# covers note discovery, the log heading and the extractor backend

from __future__ import annotations

import os
from dataclasses import dataclass

from ingestion.llm_extract import DEFAULT_ENDPOINT, DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS

EXTRACTOR_HEURISTIC = "heuristic"
EXTRACTOR_LLM = "llm"
CACHE_BACKENDS = {"file", "postgres", "none"}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AnalyzerSettings:
    health_log_heading: str = "Health log"
    use_date_regex: bool = True
    date_regex_pattern: str = r"\d{4}-\d{2}-\d{2}"
    daily_note_tag: str = "#daily"
    extractor: str = EXTRACTOR_HEURISTIC
    llm_endpoint: str = DEFAULT_ENDPOINT
    llm_model: str = DEFAULT_MODEL
    llm_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    cache_backend: str = "file"
    cache_dir: str = ".health_log_cache"

    def __post_init__(self) -> None:
        self.extractor = self.extractor.strip().lower()
        if self.extractor not in {EXTRACTOR_HEURISTIC, EXTRACTOR_LLM}:
            raise ValueError(f"unsupported extractor: {self.extractor}")
        self.cache_backend = self.cache_backend.strip().lower()
        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(f"unsupported cache backend: {self.cache_backend}")
        if not self.health_log_heading.strip():
            raise ValueError("health log heading cannot be empty")

    @classmethod
    def from_env(cls) -> "AnalyzerSettings":
        return cls(
            health_log_heading=os.getenv("HEALTH_LOG_HEADING", "Health log"),
            use_date_regex=_env_flag("HEALTH_LOG_USE_DATE_REGEX", "1"),
            date_regex_pattern=os.getenv("HEALTH_LOG_DATE_PATTERN", r"\d{4}-\d{2}-\d{2}"),
            daily_note_tag=os.getenv("HEALTH_LOG_DAILY_TAG", "#daily"),
            extractor=os.getenv("HEALTH_LOG_EXTRACTOR", EXTRACTOR_HEURISTIC),
            llm_endpoint=os.getenv("HEALTH_LOG_LLM_ENDPOINT", DEFAULT_ENDPOINT),
            llm_model=os.getenv("HEALTH_LOG_LLM_MODEL", DEFAULT_MODEL),
            llm_timeout_seconds=float(os.getenv("HEALTH_LOG_LLM_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))),
            cache_backend=os.getenv("HEALTH_LOG_CACHE_BACKEND", "file"),
            cache_dir=os.getenv("HEALTH_LOG_CACHE_DIR", ".health_log_cache"),
        )
