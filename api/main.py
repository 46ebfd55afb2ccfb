import logging
import os
from contextlib import asynccontextmanager
from dataclasses import replace

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.db import initialize_database
from api.schemas import AnalyzeIn, AnalyzeOut, ParseLogIn, ParseLogOut
from api.settings import EXTRACTOR_LLM, AnalyzerSettings
from api.worker.log_batch import analyze_documents, build_extractor, build_store
from ingestion.entries import Document, ParsedEntry
from ingestion.extraction_cache import ExtractionCache
from ingestion.parse_log import HeuristicExtractor
from ingestion.section import extract_section


@asynccontextmanager
async def _lifespan(app: FastAPI):
    _ = app
    # the kv table only matters when the cache lives in postgres
    if AnalyzerSettings.from_env().cache_backend == "postgres":
        initialize_database()
    yield


app = FastAPI(
    title="Health Log Analyzer API",
    version="0.1.0",
    lifespan=_lifespan,
)
logger = logging.getLogger(__name__)


def _cors_allow_origins() -> list[str]:
    configured = os.getenv("CORS_ALLOW_ORIGINS", "")
    if configured.strip():
        return [origin.strip().rstrip("/") for origin in configured.split(",") if origin.strip()]
    return [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
    ]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _load_settings(extractor: str | None = None) -> AnalyzerSettings:
    try:
        settings = AnalyzerSettings.from_env()
    except ValueError as exc:
        logger.exception("Invalid analyzer configuration")
        raise HTTPException(status_code=500, detail=f"invalid analyzer configuration: {exc}")
    if extractor:
        settings = replace(settings, extractor=extractor)
    return settings


# parse one note (or a bare section when heading is null) with the rule based extractor
@app.post("/health_log/parse", response_model=ParseLogOut)
def parse_health_log_text(payload: ParseLogIn):
    if payload.heading is None:
        section_text = payload.text
    else:
        if not payload.heading.strip():
            raise HTTPException(status_code=400, detail="heading cannot be empty")
        section_text = extract_section(payload.text, payload.heading)

    document = Document(id=payload.document_id, label=payload.date, text=payload.text)
    if section_text is None:
        entry = ParsedEntry.empty(document.id, document.label)
        return {"status": "ignored", "section_found": False, "entry": entry.to_dict()}
    entry = HeuristicExtractor().extract(document, section_text)
    return {"status": "ok", "section_found": True, "entry": entry.to_dict()}


# extract every document then rank trigger -> symptom associations
@app.post("/health_log/analyze", response_model=AnalyzeOut)
def analyze_health_log(payload: AnalyzeIn):
    if not payload.heading.strip():
        raise HTTPException(status_code=400, detail="heading cannot be empty")
    ids = [document.id for document in payload.documents]
    if len(ids) != len(set(ids)):
        raise HTTPException(status_code=400, detail="document ids must be unique")

    settings = _load_settings(payload.extractor)
    # only model extraction is cached
    store = build_store(settings) if settings.extractor == EXTRACTOR_LLM else None
    cache = ExtractionCache.load(store) if store is not None else ExtractionCache()
    extractor = build_extractor(settings, cache)

    documents = [
        Document(id=document.id, label=document.label, text=document.text, modified=document.modified)
        for document in payload.documents
    ]
    result = analyze_documents(
        documents,
        extractor,
        heading=payload.heading,
        cache=cache,
        store=store,
    )
    return result.to_dict()
