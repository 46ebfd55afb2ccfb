# rank trigger -> symptom co-occurrence within the same daily entry
# correlation only: order and explicit timing inside the day do not gate a pair

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ingestion.entries import ParsedEntry, Symptom, TimedItem
from ingestion.time_utils import format_lag


@dataclass(frozen=True)
class Occurrence:
    date: str
    trigger_time: str | None = None
    symptom_time: str | None = None
    time_lag: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "trigger_time": self.trigger_time,
            "symptom_time": self.symptom_time,
            "time_lag": self.time_lag,
        }


@dataclass
class Association:
    trigger_type: str
    trigger_name: str
    symptom: str
    occurrences: list[Occurrence] = field(default_factory=list)
    total_count: int = 0
    percentage: float = 0.0
    trigger_count: int = 0
    occurrence_rate: float = 0.0

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.trigger_type, self.trigger_name, self.symptom)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": {"type": self.trigger_type, "name": self.trigger_name},
            "symptom": self.symptom,
            "occurrences": [occurrence.to_dict() for occurrence in self.occurrences],
            "total_count": self.total_count,
            "percentage": self.percentage,
            "trigger_count": self.trigger_count,
            "occurrence_rate": self.occurrence_rate,
        }


def _occurrence(entry: ParsedEntry, trigger: TimedItem, symptom: Symptom) -> Occurrence:
    time_lag = symptom.onset or format_lag(trigger.time, symptom.time)
    return Occurrence(
        date=entry.date,
        trigger_time=trigger.time,
        symptom_time=symptom.time,
        time_lag=time_lag,
    )


def analyze_associations(entries: Iterable[ParsedEntry]) -> list[Association]:
    aggregates: dict[tuple[str, str, str], Association] = {}
    trigger_counts: dict[tuple[str, str], int] = {}

    for entry in entries:
        for trigger in entry.triggers:
            trigger_key = (trigger.kind, trigger.label)
            trigger_counts[trigger_key] = trigger_counts.get(trigger_key, 0) + 1
            for symptom in entry.symptoms:
                key = (trigger.kind, trigger.label, symptom.label)
                association = aggregates.get(key)
                if association is None:
                    association = Association(
                        trigger_type=trigger.kind,
                        trigger_name=trigger.label,
                        symptom=symptom.label,
                    )
                    aggregates[key] = association
                # Items are deduplicated per entry, so each pair counts once per day.
                association.total_count += 1
                association.occurrences.append(_occurrence(entry, trigger, symptom))

    # Each trigger's most frequent symptom anchors 100%.
    max_per_trigger: dict[tuple[str, str], int] = {}
    for association in aggregates.values():
        trigger_key = (association.trigger_type, association.trigger_name)
        if association.total_count > max_per_trigger.get(trigger_key, 0):
            max_per_trigger[trigger_key] = association.total_count

    for association in aggregates.values():
        trigger_key = (association.trigger_type, association.trigger_name)
        association.percentage = association.total_count / max_per_trigger[trigger_key] * 100
        association.trigger_count = trigger_counts[trigger_key]
        association.occurrence_rate = association.total_count / association.trigger_count * 100

    return sorted(aggregates.values(), key=lambda association: association.total_count, reverse=True)


def summarize_entries(entries: Iterable[ParsedEntry]) -> dict[str, int]:
    rows = list(entries)
    return {
        "entries": len(rows),
        "unique_foods": len({item.label for entry in rows for item in entry.foods}),
        "unique_supplements": len({item.label for entry in rows for item in entry.supplements}),
        "unique_exercise": len({item.label for entry in rows for item in entry.exercise}),
        "unique_symptoms": len({item.label for entry in rows for item in entry.symptoms}),
    }
