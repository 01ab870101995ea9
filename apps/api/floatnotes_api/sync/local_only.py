from __future__ import annotations

from pathlib import Path

from floatnotes_api.domain.entities import Note, SyncStatus


class LocalOnlySyncProvider:
    """Used when no sync is configured; every operation succeeds and does nothing."""

    @property
    def enabled(self) -> bool:
        return False

    @property
    def status(self) -> SyncStatus:
        return SyncStatus.disabled()

    def sync_note(self, note: Note) -> None:
        return None

    def delete_note(self, note_id: str) -> None:
        return None

    def sync_image(self, local_path: Path, image_hash: str) -> str:
        return str(local_path)

    def sync_all(self) -> None:
        return None
