from __future__ import annotations

import argparse
import json
import logging
import signal
import threading
from dataclasses import replace

from api.settings import EXTRACTOR_HEURISTIC, EXTRACTOR_LLM, AnalyzerSettings
from api.worker.log_batch import AnalysisResult, analyze_documents, build_extractor, build_store
from ingestion.daily_notes import find_daily_notes
from ingestion.extraction_cache import ExtractionCache

logger = logging.getLogger(__name__)


def run_once(
    notes_dir: str,
    *,
    settings: AnalyzerSettings,
    cancel_event: threading.Event | None = None,
) -> AnalysisResult:
    documents = find_daily_notes(notes_dir, settings)
    logger.info("Found %d daily notes in %s", len(documents), notes_dir)
    store = build_store(settings) if settings.extractor == EXTRACTOR_LLM else None
    cache = ExtractionCache.load(store) if store is not None else ExtractionCache()
    extractor = build_extractor(settings, cache)
    return analyze_documents(
        documents,
        extractor,
        heading=settings.health_log_heading,
        cancel_event=cancel_event,
        cache=cache,
        store=store,
    )


def _install_cancel_handler(cancel_event: threading.Event) -> None:
    def _handle(signum, frame):
        _ = frame
        logger.warning("Received signal %s; finishing current note then stopping", signum)
        cancel_event.set()

    signal.signal(signal.SIGINT, _handle)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Extract health logs from daily notes and rank trigger/symptom associations.")
    parser.add_argument("--notes-dir", required=True, help="Directory holding markdown daily notes")
    parser.add_argument(
        "--extractor",
        choices=[EXTRACTOR_HEURISTIC, EXTRACTOR_LLM],
        default=None,
        help="Extraction strategy (defaults to HEALTH_LOG_EXTRACTOR)",
    )
    parser.add_argument("--heading", default=None, help="Heading of the health log section")
    parser.add_argument("--tag", default=None, help="Select notes by this tag instead of a date-like file name")
    parser.add_argument("--log-level", default="INFO", help="Logging level for progress output")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = AnalyzerSettings.from_env()
    overrides = {}
    if args.extractor:
        overrides["extractor"] = args.extractor
    if args.heading:
        overrides["health_log_heading"] = args.heading
    if args.tag:
        overrides["daily_note_tag"] = args.tag
        overrides["use_date_regex"] = False
    if overrides:
        settings = replace(settings, **overrides)

    cancel_event = threading.Event()
    _install_cancel_handler(cancel_event)
    result = run_once(args.notes_dir, settings=settings, cancel_event=cancel_event)
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
