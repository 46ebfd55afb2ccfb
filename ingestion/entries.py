# typed items extracted from one daily health log
# each item belongs to exactly one category; the category decides which field carries its label

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union

from ingestion.normalize_item import clean_item

FOOD = "food"
SUPPLEMENT = "supplement"
EXERCISE = "exercise"
SYMPTOM = "symptom"
CATEGORIES = (FOOD, SUPPLEMENT, EXERCISE, SYMPTOM)
TRIGGER_CATEGORIES = (FOOD, SUPPLEMENT, EXERCISE)

# wire names of the four arrays, shared by the cache record and the extraction service
CATEGORY_KEYS = {
    FOOD: "foods",
    SUPPLEMENT: "supplements",
    EXERCISE: "exercise",
    SYMPTOM: "symptoms",
}


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class Food:
    name: str
    time: str | None = None
    kind = FOOD

    @property
    def label(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return _compact({"name": self.name, "time": self.time})


@dataclass(frozen=True)
class Supplement:
    name: str
    dose: str | None = None
    time: str | None = None
    kind = SUPPLEMENT

    @property
    def label(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return _compact({"name": self.name, "dose": self.dose, "time": self.time})


@dataclass(frozen=True)
class Exercise:
    activity: str
    duration: str | None = None
    time: str | None = None
    kind = EXERCISE

    @property
    def label(self) -> str:
        return self.activity

    def to_dict(self) -> dict[str, Any]:
        return _compact({"activity": self.activity, "duration": self.duration, "time": self.time})


@dataclass(frozen=True)
class Symptom:
    description: str
    severity: str | None = None
    onset: str | None = None
    time: str | None = None
    kind = SYMPTOM

    @property
    def label(self) -> str:
        return self.description

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "description": self.description,
                "severity": self.severity,
                "onset": self.onset,
                "time": self.time,
            }
        )


TimedItem = Union[Food, Supplement, Exercise, Symptom]


def _optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def item_from_dict(kind: str, data: dict[str, Any]) -> TimedItem | None:
    # Label field may arrive under any of the three names; the category decides where it lands.
    label = None
    for key in ("name", "activity", "description"):
        label = clean_item(_optional_text(data.get(key)))
        if label:
            break
    if not label:
        return None
    time = _optional_text(data.get("time"))
    if kind == FOOD:
        return Food(name=label, time=time)
    if kind == SUPPLEMENT:
        return Supplement(name=label, dose=_optional_text(data.get("dose")), time=time)
    if kind == EXERCISE:
        return Exercise(activity=label, duration=_optional_text(data.get("duration")), time=time)
    if kind == SYMPTOM:
        return Symptom(
            description=label,
            severity=_optional_text(data.get("severity")),
            onset=_optional_text(data.get("onset")),
            time=time,
        )
    raise ValueError(f"unknown item category: {kind}")


@dataclass(frozen=True)
class LogItems:
    foods: tuple[Food, ...] = ()
    supplements: tuple[Supplement, ...] = ()
    exercise: tuple[Exercise, ...] = ()
    symptoms: tuple[Symptom, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.foods or self.supplements or self.exercise or self.symptoms)

    def by_category(self, kind: str) -> tuple[TimedItem, ...]:
        return getattr(self, CATEGORY_KEYS[kind])

    @property
    def triggers(self) -> tuple[TimedItem, ...]:
        return self.foods + self.supplements + self.exercise


@dataclass(frozen=True)
class ParsedEntry(LogItems):
    document_id: str = ""
    date: str = ""

    @classmethod
    def from_items(cls, document_id: str, date: str, items: LogItems) -> "ParsedEntry":
        return cls(
            document_id=document_id,
            date=date,
            foods=items.foods,
            supplements=items.supplements,
            exercise=items.exercise,
            symptoms=items.symptoms,
        )

    @classmethod
    def empty(cls, document_id: str, date: str) -> "ParsedEntry":
        return cls(document_id=document_id, date=date)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"document_id": self.document_id, "date": self.date}
        for kind, key in CATEGORY_KEYS.items():
            out[key] = [item.to_dict() for item in self.by_category(kind)]
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedEntry":
        items = items_from_payload(data)
        return cls.from_items(str(data.get("document_id") or ""), str(data.get("date") or ""), items)


class ItemCollector:
    """Accumulates items per category, dropping exact repeats of a label."""

    def __init__(self) -> None:
        self._items: dict[str, list[TimedItem]] = {kind: [] for kind in CATEGORIES}
        self._seen: dict[str, set[str]] = {kind: set() for kind in CATEGORIES}

    def add(self, item: TimedItem) -> bool:
        if not item.label or item.label in self._seen[item.kind]:
            return False
        self._seen[item.kind].add(item.label)
        self._items[item.kind].append(item)
        return True

    def extend(self, items: LogItems) -> None:
        for kind in CATEGORIES:
            for item in items.by_category(kind):
                self.add(item)

    def build(self) -> LogItems:
        return LogItems(
            foods=tuple(self._items[FOOD]),
            supplements=tuple(self._items[SUPPLEMENT]),
            exercise=tuple(self._items[EXERCISE]),
            symptoms=tuple(self._items[SYMPTOM]),
        )


def items_from_payload(data: Any) -> LogItems:
    # Anything malformed collapses to an empty category instead of raising.
    collector = ItemCollector()
    if not isinstance(data, dict):
        return collector.build()
    for kind, key in CATEGORY_KEYS.items():
        raw_items = data.get(key)
        if not isinstance(raw_items, list):
            continue
        for raw in raw_items:
            if isinstance(raw, str):
                raw = {"name": raw}
            if not isinstance(raw, dict):
                continue
            item = item_from_dict(kind, raw)
            if item is not None:
                collector.add(item)
    return collector.build()


@dataclass(frozen=True)
class Document:
    # modified is opaque: any value that changes whenever the document text changes
    id: str
    label: str
    text: str
    modified: Any = None


class LogExtractor(Protocol):
    def extract(self, document: Document, section_text: str) -> ParsedEntry:
        ...
