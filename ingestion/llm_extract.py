# delegate health log extraction to an external language model service
# request: {"model", "prompt", "format": "json", "stream": false}; response: {"response": "<json text>"}

from __future__ import annotations

import http.client
import json
import logging
from urllib import error, request

from ingestion.entries import Document, LogItems, ParsedEntry, items_from_payload
from ingestion.extraction_cache import ExtractionCache

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:11434/api/generate"
DEFAULT_MODEL = "llama3.1"
DEFAULT_TIMEOUT_SECONDS = 60.0

_OUTPUT_SCHEMA = """{
  "foods": [{"name": "string", "time": "string or null"}],
  "supplements": [{"name": "string", "dose": "string or null", "time": "string or null"}],
  "exercise": [{"activity": "string", "duration": "string or null", "time": "string or null"}],
  "symptoms": [{"description": "string", "severity": "string or null", "onset": "string or null", "time": "string or null"}]
}"""


class ExtractionFailure(RuntimeError):
    pass


def build_prompt(section_text: str) -> str:
    return (
        "You extract structured health events from a personal daily health log.\n"
        "Rules:\n"
        "1) foods: everything eaten or drunk, one entry per item, name only.\n"
        "2) supplements: vitamins, supplements and medication, with dose when stated.\n"
        "3) exercise: physical activity and behaviors such as sleep or stress, with duration when stated.\n"
        "4) symptoms: anything the person felt, with severity and onset (e.g. \"30min later\") when stated.\n"
        "5) time: clock time of the event when stated (e.g. \"8am\"), otherwise null.\n"
        "6) Never invent items that are not in the log. Use empty arrays for missing categories.\n"
        "Respond with JSON only, exactly matching this schema:\n"
        f"{_OUTPUT_SCHEMA}\n\n"
        "Health log:\n"
        f"{section_text.strip()}\n"
    )


def parse_extraction_response(raw: str) -> LogItems:
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ExtractionFailure(f"extraction payload is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ExtractionFailure("extraction payload is not a JSON object")
    return items_from_payload(data)


class LlmClient:
    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout

    def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "format": "json",
            "stream": False,
        }
        req = request.Request(
            self.endpoint,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with request.urlopen(req, timeout=self.timeout) as response:
                status = getattr(response, "status", 200)
                if status < 200 or status >= 300:
                    raise ExtractionFailure(f"extraction service returned HTTP {status}")
                raw = json.loads(response.read().decode("utf-8"))
        except error.HTTPError as exc:
            raise ExtractionFailure(f"extraction service returned HTTP {exc.code}") from exc
        except (error.URLError, TimeoutError, OSError, http.client.HTTPException) as exc:
            raise ExtractionFailure(f"extraction service unreachable: {exc}") from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ExtractionFailure(f"extraction service sent malformed JSON: {exc}") from exc

        content = raw.get("response") if isinstance(raw, dict) else None
        if not isinstance(content, str):
            raise ExtractionFailure("extraction service response has no 'response' text")
        return content

    def extract_items(self, section_text: str) -> LogItems:
        return parse_extraction_response(self.generate(build_prompt(section_text)))


class LlmExtractor:
    """Model backed extraction with a per-document cache in front of it."""

    def __init__(self, client: LlmClient, cache: ExtractionCache | None = None) -> None:
        self.client = client
        self.cache = cache

    def extract(self, document: Document, section_text: str) -> ParsedEntry:
        # without a modification marker there is no way to tell a stale record apart
        cache = self.cache if document.modified is not None else None
        if cache is not None:
            cached = cache.get(document.id, document.modified)
            if cached is not None:
                return cached

        try:
            items = self.client.extract_items(section_text)
        except ExtractionFailure as exc:
            # failed documents contribute an empty entry and are not cached
            logger.warning("Extraction failed for %s: %s", document.id, exc)
            return ParsedEntry.empty(document.id, document.label)

        entry = ParsedEntry.from_items(document.id, document.label, items)
        if cache is not None:
            cache.put(document.id, document.modified, entry)
        return entry
