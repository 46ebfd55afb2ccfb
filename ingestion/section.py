# isolate the text under one markdown heading of a daily note
# capture ends at the next heading of the same or a shallower level

from __future__ import annotations

import re

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*$")
_CLOSING_HASHES_RE = re.compile(r"\s+#+$")


def _heading(line: str) -> tuple[int, str] | None:
    match = _HEADING_RE.match(line)
    if not match:
        return None
    title = _CLOSING_HASHES_RE.sub("", match.group(2)).strip()
    return len(match.group(1)), title


def extract_section(document_text: str, heading_name: str) -> str | None:
    target = heading_name.strip().lower()
    captured: list[str] = []
    in_section = False
    section_level = 0

    for line in (document_text or "").splitlines():
        heading = _heading(line)
        if heading is not None:
            level, title = heading
            if in_section:
                if level <= section_level:
                    break
            elif title.lower() == target:
                in_section = True
                section_level = level
                continue
        if in_section:
            captured.append(line)

    if not captured:
        return None
    return "\n".join(captured)
