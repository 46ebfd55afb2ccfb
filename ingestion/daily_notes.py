# discover daily notes in a markdown vault directory
# a note qualifies by a date-like file name, or (when date matching is off) by carrying the daily tag

from __future__ import annotations

import re
from pathlib import Path

from api.settings import AnalyzerSettings
from ingestion.entries import Document

_FRONT_MATTER_RE = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.S)
_FRONT_MATTER_TAGS_RE = re.compile(r"^tags[ \t]*:[ \t]*(.*)$", re.M)
_FRONT_MATTER_LIST_ITEM_RE = re.compile(r"^\s*-\s*(.+?)\s*$")


def _front_matter_tags(text: str) -> set[str]:
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        return set()
    block = match.group(1)
    tags_match = _FRONT_MATTER_TAGS_RE.search(block)
    if not tags_match:
        return set()
    inline = tags_match.group(1).strip()
    values: list[str] = []
    if inline:
        values = [part for part in re.split(r"[,\s\[\]]+", inline) if part]
    else:
        for line in block[tags_match.end():].splitlines()[1:]:
            item = _FRONT_MATTER_LIST_ITEM_RE.match(line)
            if not item:
                break
            values.append(item.group(1))
    return {value.strip("'\"").lstrip("#").lower() for value in values if value.strip("'\"")}


def has_tag(text: str, tag: str) -> bool:
    name = tag.strip().lstrip("#")
    if not name:
        return False
    inline = re.compile(rf"(?<![\w#])#{re.escape(name)}(?![\w/-])", re.I)
    if inline.search(text):
        return True
    return name.lower() in _front_matter_tags(text)


def is_daily_note(path: Path, text: str, settings: AnalyzerSettings) -> bool:
    if settings.use_date_regex:
        return re.search(settings.date_regex_pattern, path.stem) is not None
    return has_tag(text, settings.daily_note_tag)


def find_daily_notes(directory: str | Path, settings: AnalyzerSettings) -> list[Document]:
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"notes directory not found: {root}")
    notes: list[Document] = []
    for path in sorted(root.rglob("*.md")):
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        if settings.use_date_regex and re.search(settings.date_regex_pattern, path.stem) is None:
            continue
        text = path.read_text(encoding="utf-8")
        if not is_daily_note(path, text, settings):
            continue
        notes.append(
            Document(
                id=path.relative_to(root).as_posix(),
                label=path.stem,
                text=text,
                modified=path.stat().st_mtime_ns,
            )
        )
    return sorted(notes, key=lambda note: note.label)
