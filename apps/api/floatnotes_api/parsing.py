from __future__ import annotations

import re

DEFAULT_TITLE = "Untitled Note"
PREVIEW_MAX_CHARS = 100

_SECTION_RE = re.compile(r"<!--\s*section:\s*(.+?)\s*-->", re.IGNORECASE)
_HEADING_PREFIX_RE = re.compile(r"^#+\s*")


def parse_section(content: str) -> str | None:
    """Section label from an embedded `<!-- section: X -->` comment, if any."""
    m = _SECTION_RE.search(content)
    if not m:
        return None
    section = m.group(1).strip()
    return section or None


def strip_heading(line: str) -> str:
    return _HEADING_PREFIX_RE.sub("", line, count=1)


def display_title(title: str, content: str) -> str:
    if title:
        return title
    first_line = content.splitlines()[0] if content else ""
    if not first_line:
        return DEFAULT_TITLE
    stripped = strip_heading(first_line)
    return stripped or DEFAULT_TITLE


def preview_text(content: str, *, max_chars: int = PREVIEW_MAX_CHARS) -> str:
    lines = [ln for ln in strip_heading(content).splitlines() if ln]
    preview = " ".join(lines[:2])
    if len(preview) > max_chars:
        return preview[:max_chars] + "..."
    return preview
