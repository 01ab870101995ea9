from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from floatnotes_api.domain.entities import Note, SyncStatus


@runtime_checkable
class SyncProvider(Protocol):
    @property
    def enabled(self) -> bool:
        ...

    @property
    def status(self) -> SyncStatus:
        ...

    def sync_note(self, note: Note) -> None:
        ...

    def delete_note(self, note_id: str) -> None:
        ...

    def sync_image(self, local_path: Path, image_hash: str) -> str:
        ...

    def sync_all(self) -> None:
        ...
