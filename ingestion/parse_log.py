# convert the text of a daily "Health log" section into typed items
# ie: "- Ate eggs, feta, and bread - migraine 30min later" -> eggs, feta, bread as foods, migraine as symptom

from __future__ import annotations

import re

from ingestion.entries import (
    EXERCISE,
    FOOD,
    SUPPLEMENT,
    SYMPTOM,
    Document,
    Exercise,
    Food,
    ItemCollector,
    LogItems,
    ParsedEntry,
    Supplement,
    Symptom,
    TimedItem,
)
from ingestion.normalize_item import clean_item
from ingestion.time_utils import find_duration, split_onset, split_trailing_time

_CATEGORY_WORDS = {
    "food": FOOD,
    "supplement": SUPPLEMENT,
    "behavior": EXERCISE,
    "behaviour": EXERCISE,
    "exercise": EXERCISE,
    "symptom": SYMPTOM,
}

# Regex for recognizing the different line formats within a health log
_CATEGORY_LABEL_RE = re.compile(
    r"^[*_]{0,2}(foods?|supplements?|behaviou?rs?|exercises?|symptoms?)[*_]{0,2}"
    r"(?:\s*:[*_]{0,2}\s*|\s+|$)(.*)$",
    re.I,
)
_SUBHEADING_RE = re.compile(r"^#{1,6}\s+")
_RULE_RE = re.compile(r"^[-*_]{3,}$")
_TAG_LINE_RE = re.compile(r"^(?:#[\w/-]+\s*)+$")
_BULLET_ITEM_RE = re.compile(r"^[-*+]\s+(.+)$")
_NUMBERED_ITEM_RE = re.compile(r"^\d+\.\s+(.+)$")
# "supplement" and "exercise" are common first words of real items, so they need a colon
_INLINE_CATEGORY_RE = re.compile(
    r"^(?:(foods?|behaviou?rs?|symptoms?)[\s:]+|(supplements?|exercises?)\s*:\s*)(.+)$",
    re.I,
)

_NARRATIVE_SPLIT_RE = re.compile(
    r"\s*[—–]{1,3}\s*|\s*-{2,3}\s*|\s+-\s*|-\s+|\s+(?:then|after(?:ward)?|later|followed by|resulting in|caused|led to)\s+",
    re.I,
)
_FOOD_VERB_RE = re.compile(r"^(?:ate|had|consumed|drank|eating|drinking|ingested)\s+(.+)", re.I)
_BEHAVIOR_VERB_RE = re.compile(
    r"^(?:exercised|worked out|slept|ran|walked|meditated|yoga|stressed|climbed|hiit|lifted|cycled|swam)\b",
    re.I,
)
_NARRATIVE_SYMPTOM_RE = re.compile(
    r"\b(pain|ache|nausea|tired|fatigue|bloat|bloating|cramp|rash|itch|headache|migraine|dizzy|dizziness|"
    r"swelling|sore|throat|reflux|discomfort|malaise|joint|stomach|acid|sick|ill)\b",
    re.I,
)
# prefix match: "headaches", "itchy", "painful" all count
_FALLBACK_SYMPTOM_RE = re.compile(
    r"\b(pain|ache|nausea|tired|fatigue|bloat|bloating|cramp|rash|itch|itching|headache|migraine|dizzy|"
    r"dizziness|swelling|sore|throat|scratchy|reflux|discomfort|malaise|joint|stomach|acid|sick|ill|nasty|"
    r"hurt|suffer)",
    re.I,
)
_FALLBACK_BEHAVIOR_RE = re.compile(
    r"\b(exercise|exercised|walk|walked|walking|run|ran|running|sleep|slept|stress|stressed|anxiety|"
    r"workout|worked out|meditation|meditated|yoga|climb|climbed|climbing|lift|lifted|lifting|hiit|"
    r"cycle|cycled|cycling|swim|swam|swimming)\b",
    re.I,
)
_AND_RE = re.compile(r"\s+and\s+", re.I)

_SEVERITY_RATING_RE = re.compile(r"^(?P<head>.*?\S)[\s,(]+(?P<severity>(?:10|\d)\s*/\s*(?:10|5))\)?\s*$")
_SEVERITY_LABEL_RE = re.compile(
    r"^(?P<head>.*?\S)[\s,(]+(?:severity|sev)\s*[:=]?\s*(?P<severity>10|\d)\)?\s*$",
    re.I,
)
_SEVERITY_WORD_RE = re.compile(r"^(mild|moderate|severe|slight|intense)\b", re.I)
_DOSE_RE = re.compile(
    r"^(?P<head>.*?\S)[\s,(]+(?P<dose>\d+(?:\.\d+)?\s*(?:mg|mcg|µg|ug|g|iu|ml|drops?|capsules?|caps|tablets?|tabs?|pills?|scoops?))\)?\s*$",
    re.I,
)


def _parse_severity(text: str) -> tuple[str, str | None]:
    for pattern in (_SEVERITY_RATING_RE, _SEVERITY_LABEL_RE):
        match = pattern.match(text)
        if match:
            return match.group("head").strip(), match.group("severity").replace(" ", "")
    word = _SEVERITY_WORD_RE.match(text)
    if word:
        return text, word.group(1).lower()
    return text, None


def make_item(text: str, category: str, *, time: str | None = None) -> TimedItem | None:
    value = clean_item(text)
    if not value:
        return None
    value, trailing_time = split_trailing_time(value)
    time = time or trailing_time

    if category == SYMPTOM:
        value, severity = _parse_severity(value)
        value, onset = split_onset(value)
        if time is None:
            value, time = split_trailing_time(value)
        value = clean_item(value)
        if not value:
            return None
        return Symptom(description=value, severity=severity, onset=onset, time=time)

    if category == SUPPLEMENT:
        match = _DOSE_RE.match(value)
        dose = None
        if match:
            value, dose = match.group("head"), match.group("dose")
        value = clean_item(value)
        return Supplement(name=value, dose=dose, time=time) if value else None

    value = clean_item(value)
    if not value:
        return None
    if category == EXERCISE:
        return Exercise(activity=value, duration=find_duration(value), time=time)
    return Food(name=value, time=time)


def _add(collector: ItemCollector, text: str, category: str) -> None:
    item = make_item(text, category)
    if item is not None:
        collector.add(item)


def categorize_item(text: str) -> str:
    # Closed world: anything without a symptom or behavior keyword is treated as food.
    value = clean_item(text).lower()
    if _FALLBACK_SYMPTOM_RE.search(value):
        return SYMPTOM
    if _FALLBACK_BEHAVIOR_RE.search(value):
        return EXERCISE
    return FOOD


def categorize_and_add_item(collector: ItemCollector, text: str) -> None:
    if not clean_item(text):
        return
    _add(collector, text, categorize_item(text))


def extract_item_list(text: str) -> list[str]:
    joined = _AND_RE.sub(", ", text)
    return [item for item in (clean_item(part) for part in joined.split(",")) if item]


def parse_narrative_entry(text: str) -> LogItems | None:
    parts = _NARRATIVE_SPLIT_RE.split(text)
    first_part = parts[0].strip()
    collector = ItemCollector()
    found_trigger = False

    head, time = split_trailing_time(clean_item(first_part))
    food_match = _FOOD_VERB_RE.match(head)
    if food_match:
        for name in extract_item_list(food_match.group(1)):
            item = make_item(name, FOOD, time=time)
            if item is not None and collector.add(item):
                found_trigger = True

    if _BEHAVIOR_VERB_RE.match(head):
        item = make_item(head, EXERCISE, time=time)
        if item is not None and collector.add(item):
            found_trigger = True

    found_symptom = False
    for part in parts[1:]:
        part = part.strip()
        if not part or not _NARRATIVE_SYMPTOM_RE.search(part):
            continue
        item = make_item(part, SYMPTOM)
        if item is not None:
            collector.add(item)
            found_symptom = True

    # An activity mention with no outcome is left to the other strategies.
    if found_trigger and (found_symptom or food_match):
        return collector.build()
    return None


def _category_label(line: str) -> tuple[str, str] | None:
    match = _CATEGORY_LABEL_RE.match(line)
    if not match:
        return None
    word = match.group(1).lower().rstrip("s")
    return _CATEGORY_WORDS[word], match.group(2).strip()


def _add_list(collector: ItemCollector, text: str, category: str) -> None:
    for part in text.split(","):
        _add(collector, part, category)


def _parse_line(line: str, category: str | None, collector: ItemCollector) -> str | None:
    """Apply the strategy chain to one line and return the category in effect afterwards."""
    if not line or _RULE_RE.match(line) or _TAG_LINE_RE.match(line):
        return category

    if _SUBHEADING_RE.match(line):
        label = _category_label(_SUBHEADING_RE.sub("", line).strip())
        return label[0] if label else category

    label = _category_label(line)
    if label is not None:
        category, remaining = label
        if remaining:
            _add_list(collector, remaining, category)
        return category

    list_match = _BULLET_ITEM_RE.match(line) or _NUMBERED_ITEM_RE.match(line)
    if list_match:
        item = list_match.group(1).strip()
        if item.rstrip("*_ ").endswith(":"):
            label = _category_label(item)
            if label is not None and not label[1]:
                return label[0]
        narrative = parse_narrative_entry(item)
        if narrative is not None:
            collector.extend(narrative)
            return category
        inline = _INLINE_CATEGORY_RE.match(item)
        if inline:
            word = (inline.group(1) or inline.group(2)).lower().rstrip("s")
            _add_list(collector, inline.group(3), _CATEGORY_WORDS[word])
        elif category:
            _add(collector, item, category)
        else:
            categorize_and_add_item(collector, item)
        return category

    if category and "," in line:
        _add_list(collector, line, category)
        return category

    narrative = parse_narrative_entry(line)
    if narrative is not None:
        collector.extend(narrative)
    elif category:
        _add(collector, line, category)
    else:
        categorize_and_add_item(collector, line)
    return category


def parse_health_log(section_text: str) -> LogItems:
    collector = ItemCollector()
    category: str | None = None
    for raw_line in (section_text or "").splitlines():
        category = _parse_line(raw_line.strip(), category, collector)
    return collector.build()


class HeuristicExtractor:
    """Rule based extraction; deterministic, no network and no cache."""

    def extract(self, document: Document, section_text: str) -> ParsedEntry:
        return ParsedEntry.from_items(document.id, document.label, parse_health_log(section_text))
