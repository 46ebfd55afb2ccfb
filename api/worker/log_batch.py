# batch extraction over daily notes, then association analysis
# cancellation is cooperative: the flag is checked before each document and partial results are kept

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from analysis.associations import Association, analyze_associations, summarize_entries
from api.settings import EXTRACTOR_LLM, AnalyzerSettings
from ingestion.entries import Document, LogExtractor, ParsedEntry
from ingestion.extraction_cache import ExtractionCache, KeyValueStore
from ingestion.llm_extract import LlmClient, LlmExtractor
from ingestion.parse_log import HeuristicExtractor
from ingestion.section import extract_section

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    entries: list[ParsedEntry] = field(default_factory=list)
    processed: int = 0
    cancelled: bool = False


@dataclass
class AnalysisResult:
    entries: list[ParsedEntry] = field(default_factory=list)
    associations: list[Association] = field(default_factory=list)
    cancelled: bool = False
    summary: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "associations": [association.to_dict() for association in self.associations],
            "cancelled": self.cancelled,
            "summary": dict(self.summary),
        }


def build_store(settings: AnalyzerSettings) -> KeyValueStore | None:
    if settings.cache_backend == "none":
        return None
    if settings.cache_backend == "postgres":
        from api.repositories.kv_store import PostgresKeyValueStore

        return PostgresKeyValueStore()
    from api.repositories.kv_store import FileKeyValueStore

    return FileKeyValueStore(Path(settings.cache_dir))


def build_extractor(settings: AnalyzerSettings, cache: ExtractionCache | None = None) -> LogExtractor:
    if settings.extractor == EXTRACTOR_LLM:
        client = LlmClient(
            endpoint=settings.llm_endpoint,
            model=settings.llm_model,
            timeout=settings.llm_timeout_seconds,
        )
        return LlmExtractor(client, cache)
    return HeuristicExtractor()


def _persist(cache: ExtractionCache | None, store: KeyValueStore | None) -> None:
    if cache is None or store is None:
        return
    if cache.save(store):
        logger.info("Saved extraction cache with %d entries", len(cache))


def run_extraction_batch(
    documents: Iterable[Document],
    extractor: LogExtractor,
    *,
    heading: str,
    cancel_event: threading.Event | None = None,
    cache: ExtractionCache | None = None,
    store: KeyValueStore | None = None,
) -> BatchResult:
    result = BatchResult()
    for document in sorted(documents, key=lambda doc: doc.label):
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Extraction cancelled after %d documents", result.processed)
            result.cancelled = True
            _persist(cache, store)
            return result

        section_text = extract_section(document.text, heading)
        result.processed += 1
        if section_text is None:
            continue
        entry = extractor.extract(document, section_text)
        if entry.is_empty:
            continue
        result.entries.append(entry)

    _persist(cache, store)
    return result


def analyze_documents(
    documents: Iterable[Document],
    extractor: LogExtractor,
    *,
    heading: str,
    cancel_event: threading.Event | None = None,
    cache: ExtractionCache | None = None,
    store: KeyValueStore | None = None,
) -> AnalysisResult:
    batch = run_extraction_batch(
        documents,
        extractor,
        heading=heading,
        cancel_event=cancel_event,
        cache=cache,
        store=store,
    )
    return AnalysisResult(
        entries=batch.entries,
        associations=analyze_associations(batch.entries),
        cancelled=batch.cancelled,
        summary=summarize_entries(batch.entries),
    )
