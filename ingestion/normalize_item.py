# normalize raw item fragments before they are compared or stored
# ie: "- **Coffee**" and "1. coffee " both reduce to the same candidate text

from __future__ import annotations

import re

_BOLD_RE = re.compile(r"\*\*|__")
_STAR_RE = re.compile(r"\*")
# single underscores only count as emphasis when they wrap a word run
_UNDERSCORE_WRAP_RE = re.compile(r"(?<![\w_])_(?=\S)(.+?)(?<=\S)_(?![\w_])")
_BULLET_RE = re.compile(r"^[-*+]\s+")
_ORDINAL_RE = re.compile(r"^\d+\.\s+")


def _clean_once(text: str) -> str:
    value = _BOLD_RE.sub("", text)
    value = _STAR_RE.sub("", value)
    value = _UNDERSCORE_WRAP_RE.sub(r"\1", value)
    value = value.strip()
    value = _BULLET_RE.sub("", value)
    value = _ORDINAL_RE.sub("", value)
    return value.strip()


def clean_item(text: str | None) -> str:
    # Repeat until stable so clean_item(clean_item(x)) == clean_item(x) holds
    # for nested markers like "- 1. **eggs**".
    value = text or ""
    while True:
        cleaned = _clean_once(value)
        if cleaned == value:
            return cleaned
        value = cleaned
