from __future__ import annotations

import re

_UNIT = r"(?:m|min|mins|minutes?|h|hr|hrs|hours?)"
_CLOCK = r"\d{1,2}(?::\d{2})?\s*(?:am|pm)?"

_TRAILING_TIME_RE = re.compile(
    rf"^(?P<head>.*?)\s*(?P<marker>\bat\s+|@\s*|\()(?P<time>{_CLOCK})\)?\s*$",
    re.I,
)
_ONSET_RE = re.compile(
    r"^(?P<head>.*?\S)[\s,(]+(?P<onset>"
    rf"(?:~\s*)?\d+(?:\.\d+)?\s*{_UNIT}\s+(?:later|after(?:wards?)?)"
    rf"|within\s+(?:an?\s+|\d+(?:\.\d+)?\s*){_UNIT}"
    r"|later|after(?:wards?)?"
    r")\)?\s*$",
    re.I,
)
_CLOCK_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$", re.I)
_DURATION_RE = re.compile(rf"\bfor\s+(?:about\s+|~\s*)?(\d+(?:\.\d+)?\s*{_UNIT})\b", re.I)


def split_trailing_time(text: str) -> tuple[str, str | None]:
    # "coffee at 8am" -> ("coffee", "8am"); bare numbers without a clock marker stay in the text
    match = _TRAILING_TIME_RE.match(text)
    if not match or not match.group("head").strip():
        return text, None
    value = match.group("time").strip()
    if parse_clock_minutes(value) is None:
        return text, None
    if match.group("marker") == "(" and ":" not in value and not re.search(r"(am|pm)$", value, re.I):
        return text, None
    return match.group("head").strip(), value


def split_onset(text: str) -> tuple[str, str | None]:
    match = _ONSET_RE.match(text)
    if not match:
        return text, None
    return match.group("head").strip(), match.group("onset").strip()


def find_duration(text: str) -> str | None:
    match = _DURATION_RE.search(text)
    return match.group(1).strip() if match else None


def parse_clock_minutes(value: str | None) -> int | None:
    if not value:
        return None
    match = _CLOCK_RE.match(value.strip())
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").lower()
    if minute > 59:
        return None
    if meridiem:
        if hour < 1 or hour > 12:
            return None
        if meridiem == "pm" and hour < 12:
            hour += 12
        if meridiem == "am" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return hour * 60 + minute


def format_lag(trigger_time: str | None, symptom_time: str | None) -> str | None:
    # Same-day only: a symptom logged before its trigger yields no lag.
    start = parse_clock_minutes(trigger_time)
    end = parse_clock_minutes(symptom_time)
    if start is None or end is None or end < start:
        return None
    minutes = end - start
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h {rest}min"
    if hours:
        return f"{hours}h"
    return f"{rest}min"
