from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from floatnotes_api.parsing import display_title, parse_section, preview_text
from floatnotes_api.util import as_utc, utc_now


@dataclass(frozen=True)
class Note:
    id: str
    title: str = ""
    content: str = ""
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    pinned: bool = False
    archived: bool = False
    color: str | None = None
    section: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "updated_at", as_utc(self.updated_at))
        if self.section is None:
            object.__setattr__(self, "section", parse_section(self.content))

    @property
    def display_name(self) -> str:
        return display_title(self.title, self.content)

    @property
    def preview(self) -> str:
        return preview_text(self.content)


@dataclass(frozen=True)
class NoteIndexEntry:
    id: str
    title: str
    preview: str
    created_at: datetime
    updated_at: datetime
    pinned: bool
    section: str | None

    @classmethod
    def from_note(cls, note: Note) -> NoteIndexEntry:
        return cls(
            id=note.id,
            title=note.display_name,
            preview=note.preview,
            created_at=note.created_at,
            updated_at=note.updated_at,
            pinned=note.pinned,
            section=note.section,
        )


class SyncState(str, Enum):
    SYNCED = "synced"
    SYNCING = "syncing"
    ERROR = "error"
    DISABLED = "disabled"


@dataclass(frozen=True)
class SyncStatus:
    state: SyncState
    detail: str | None = None

    @classmethod
    def synced(cls) -> SyncStatus:
        return cls(SyncState.SYNCED)

    @classmethod
    def syncing(cls) -> SyncStatus:
        return cls(SyncState.SYNCING)

    @classmethod
    def disabled(cls) -> SyncStatus:
        return cls(SyncState.DISABLED)

    @classmethod
    def error(cls, detail: str) -> SyncStatus:
        return cls(SyncState.ERROR, detail)

    @property
    def is_healthy(self) -> bool:
        return self.state is not SyncState.ERROR

    @property
    def display_text(self) -> str:
        if self.state is SyncState.SYNCED:
            return "Synced"
        if self.state is SyncState.SYNCING:
            return "Syncing..."
        if self.state is SyncState.DISABLED:
            return "Sync disabled"
        return f"Error: {self.detail}"
