from __future__ import annotations

import html
import json

from floatnotes_api.domain.entities import Note, NoteIndexEntry
from floatnotes_api.domain.schemas import NoteIndexEntryOut, NoteRecord
from floatnotes_api.viewer import templates

VIEWER_TITLE = "Floating Notes"


def index_entries(notes: list[Note]) -> list[NoteIndexEntry]:
    entries = [NoteIndexEntry.from_note(n) for n in notes]
    entries.sort(key=lambda e: e.updated_at, reverse=True)
    return entries


def index_payload(entries: list[NoteIndexEntry]) -> list[dict]:
    return [NoteIndexEntryOut.from_entry(e).model_dump(mode="json") for e in entries]


def _script_json(data: object) -> str:
    # Inline <script> data must not be able to close the element.
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False).replace("</", "<\\/")


class WebViewerGenerator:
    """Renders the web viewer pages; performs no I/O."""

    def __init__(self, title: str = VIEWER_TITLE) -> None:
        self.title = title

    def _page(self, loaders: str) -> str:
        render = templates.RENDER_SCRIPT % {"default_section": json.dumps(templates.DEFAULT_SECTION)}
        return templates.PAGE % {
            "title": html.escape(self.title),
            "styles": templates.STYLES,
            "loaders": loaders,
            "render": render,
        }

    def viewer_html(self) -> str:
        """Page served at `/` by the preview server; loads data over HTTP."""
        return self._page(templates.FETCH_LOADERS)

    def standalone_html(self, notes: list[Note]) -> str:
        """Self-contained page with every note embedded, for static hosting."""
        notes_data = [NoteRecord.from_note(n).model_dump(mode="json") for n in notes]
        index_data = index_payload(index_entries(notes))
        loaders = templates.EMBEDDED_LOADERS % {
            "notes_json": _script_json(notes_data),
            "index_json": _script_json(index_data),
        }
        return self._page(loaders)
