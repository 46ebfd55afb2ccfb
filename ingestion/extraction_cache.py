# versioned cache of extraction results, keyed by document id
# a record is reused only while the document's modification marker is unchanged

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from ingestion.entries import ParsedEntry

logger = logging.getLogger(__name__)

CACHE_SCHEMA_VERSION = 1
CACHE_STORE_KEY = "extraction-cache"


class KeyValueStore(Protocol):
    def read(self, key: str) -> bytes | None:
        ...

    def write(self, key: str, value: bytes) -> None:
        ...


@dataclass(frozen=True)
class CacheRecord:
    document_id: str
    modification_marker: Any
    parsed: ParsedEntry

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "modification_marker": self.modification_marker,
            "parsed": self.parsed.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheRecord":
        return cls(
            document_id=str(data["document_id"]),
            modification_marker=data.get("modification_marker"),
            parsed=ParsedEntry.from_dict(data["parsed"]),
        )


class ExtractionCache:
    def __init__(self, records: dict[str, CacheRecord] | None = None) -> None:
        self._records: dict[str, CacheRecord] = dict(records or {})

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._records

    def get(self, document_id: str, modification_marker: Any) -> ParsedEntry | None:
        record = self._records.get(document_id)
        if record is None or record.modification_marker != modification_marker:
            return None
        return record.parsed

    def put(self, document_id: str, modification_marker: Any, parsed: ParsedEntry) -> None:
        self._records[document_id] = CacheRecord(document_id, modification_marker, parsed)

    def records(self) -> list[CacheRecord]:
        return list(self._records.values())

    def to_json(self) -> bytes:
        payload = {
            "version": CACHE_SCHEMA_VERSION,
            "entries": {key: record.to_dict() for key, record in self._records.items()},
        }
        return json.dumps(payload, sort_keys=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes | str | None) -> "ExtractionCache":
        # Unknown versions and unreadable payloads both start over from an empty cache.
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Extraction cache is not valid JSON; starting empty")
            return cls()
        if not isinstance(data, dict) or data.get("version") != CACHE_SCHEMA_VERSION:
            logger.info("Extraction cache version changed; starting empty")
            return cls()
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return cls()
        records: dict[str, CacheRecord] = {}
        try:
            for document_id, record in entries.items():
                records[str(document_id)] = CacheRecord.from_dict(record)
        except (KeyError, TypeError, AttributeError, ValueError):
            logger.warning("Extraction cache records are malformed; starting empty")
            return cls()
        return cls(records)

    @classmethod
    def load(cls, store: KeyValueStore, key: str = CACHE_STORE_KEY) -> "ExtractionCache":
        try:
            raw = store.read(key)
        except Exception:
            logger.warning("Extraction cache could not be read; starting empty", exc_info=True)
            return cls()
        return cls.from_json(raw)

    def save(self, store: KeyValueStore, key: str = CACHE_STORE_KEY) -> bool:
        try:
            store.write(key, self.to_json())
        except Exception:
            logger.warning("Extraction cache could not be written", exc_info=True)
            return False
        return True
