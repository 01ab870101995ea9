from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from floatnotes_api.domain.entities import Note, NoteIndexEntry
from floatnotes_api.util import as_utc, utc_now


class NoteRecord(BaseModel):
    """On-disk and over-the-wire form of a note (`notes/<id>.json`)."""

    id: str = Field(min_length=1)
    title: str = ""
    content: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    pinned: bool = False
    archived: bool = False
    color: Optional[str] = None
    section: Optional[str] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_note(cls, note: Note) -> NoteRecord:
        return cls(**note.__dict__)

    def to_note(self) -> Note:
        return Note(**self.model_dump())


class NoteIndexEntryOut(BaseModel):
    id: str
    title: str
    preview: str
    created_at: datetime
    updated_at: datetime
    pinned: bool
    section: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: NoteIndexEntry) -> NoteIndexEntryOut:
        return cls(**entry.__dict__)


class SyncConfigOut(BaseModel):
    provider: Literal["none", "folder"]
    folder_path: Optional[str] = None
    hook_path: Optional[str] = None
    base_url: Optional[str] = None
    filter_secrets: bool = True


class SyncConfigIn(BaseModel):
    provider: Optional[Literal["none", "folder"]] = None
    folder_path: Optional[str] = None
    hook_path: Optional[str] = None
    base_url: Optional[str] = None
    filter_secrets: Optional[bool] = None


class SyncStatusOut(BaseModel):
    provider: Literal["none", "folder"]
    enabled: bool
    status: Literal["synced", "syncing", "error", "disabled"]
    detail: Optional[str] = None
    display_text: str
    healthy: bool


class HookVerifyOut(BaseModel):
    configured: bool
    executable: bool
    path: Optional[str] = None


class CloudLocationOut(BaseModel):
    kind: Literal["icloud", "dropbox", "custom"]
    name: str
    path: str
    display_path: str
    description: str
    recommended: bool = False


class ImageSyncIn(BaseModel):
    local_path: str
    hash: Optional[str] = None


class ImageSyncOut(BaseModel):
    url: str
    hash: str
    viewer_url: str


class SecretScanIn(BaseModel):
    content: str


class SecretScanOut(BaseModel):
    findings: list[str] = Field(default_factory=list)
    filtered: str


class PreviewOut(BaseModel):
    state: Literal["stopped", "starting", "running"]
    running: bool
    url: Optional[str] = None
    root: Optional[str] = None
    last_error: Optional[str] = None


class ExportIn(BaseModel):
    output_path: Optional[str] = None


class ExportOut(BaseModel):
    output_path: str
    note_count: int
