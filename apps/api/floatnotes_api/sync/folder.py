from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from floatnotes_api.domain.entities import Note, NoteIndexEntry, SyncStatus
from floatnotes_api.domain.exceptions import DeleteFailed, HookFailed, PathError, WriteFailed
from floatnotes_api.domain.schemas import NoteRecord
from floatnotes_api.publishing.hook import PublishHook
from floatnotes_api.redaction import SecretFilter
from floatnotes_api.sync.locations import IMAGES_DIR, NOTES_DIR, ensure_sync_folder
from floatnotes_api.util import atomic_write_bytes, atomic_write_json, atomic_write_text
from floatnotes_api.viewer.generator import WebViewerGenerator, index_entries, index_payload

INDEX_FILE = "index.json"
VIEWER_FILE = "viewer.html"

logger = logging.getLogger("floatnotes.sync")


def safe_component(value: str, what: str) -> str:
    if not value or value in {".", ".."} or "/" in value or "\\" in value or "\x00" in value:
        raise PathError(f"invalid_{what}")
    return value


class FolderSyncProvider:
    """Mirrors notes and images into a folder kept in sync by an external agent.

    Layout: `notes/<id>.json`, `images/<hash>.<ext>` and `index.json`. The index
    is a cache derived from `notes/`; it is rebuilt from a full rescan after
    every mutation and never patched in place.
    """

    def __init__(
        self,
        folder: Path,
        *,
        hook: PublishHook | None = None,
        secret_filter: SecretFilter | None = None,
    ) -> None:
        self.folder = folder
        self.notes_dir = folder / NOTES_DIR
        self.images_dir = folder / IMAGES_DIR
        self.index_path = folder / INDEX_FILE
        self.hook = hook
        self.secret_filter = secret_filter
        self._status = SyncStatus.synced()
        self._index_lock = threading.Lock()
        ensure_sync_folder(folder)

    @property
    def enabled(self) -> bool:
        return True

    @property
    def status(self) -> SyncStatus:
        return self._status

    def note_path(self, note_id: str) -> Path:
        return self.notes_dir / f"{safe_component(note_id, 'note_id')}.json"

    @contextmanager
    def _publishing(self):
        try:
            yield
        except HookFailed as e:
            # Logged here: a failing index rebuild in the caller's `finally` would replace it.
            logger.warning("publish_failed", extra={"folder": str(self.folder), "error": e.detail})
            self._status = SyncStatus.error(e.detail)
            raise

    def sync_note(self, note: Note) -> None:
        sanitized = self.secret_filter.filter_note(note) if self.secret_filter else note
        path = self.note_path(note.id)
        record = NoteRecord.from_note(sanitized)
        try:
            atomic_write_json(path, record.model_dump(mode="json"))
        except OSError as e:
            raise WriteFailed(path, e) from e
        logger.info("note_synced", extra={"id": note.id, "path": str(path)})

        # The note file is on disk now; the index follows it whatever the hook does.
        try:
            if self.hook is not None:
                with self._publishing():
                    self.hook.note_updated(note.id, path)
        finally:
            self.rebuild_index()
        self._status = SyncStatus.synced()

    def delete_note(self, note_id: str) -> None:
        path = self.note_path(note_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise DeleteFailed(path, e) from e
        logger.info("note_unsynced", extra={"id": note_id, "path": str(path)})

        try:
            if self.hook is not None:
                with self._publishing():
                    self.hook.note_deleted(note_id)
        finally:
            self.rebuild_index()
        self._status = SyncStatus.synced()

    def image_path(self, local_path: Path, image_hash: str) -> Path:
        return self.images_dir / f"{safe_component(image_hash, 'image_hash')}{local_path.suffix.lower()}"

    def sync_image(self, local_path: Path, image_hash: str) -> str:
        dest = self.image_path(local_path, image_hash)
        if not dest.exists():
            try:
                atomic_write_bytes(dest, local_path.read_bytes())
            except OSError as e:
                raise WriteFailed(dest, e) from e
            logger.info("image_synced", extra={"hash": image_hash, "path": str(dest)})

        if self.hook is not None:
            with self._publishing():
                public_url = self.hook.image_uploaded(dest, image_hash)
            if public_url:
                return public_url
        return str(dest)

    def sync_all(self) -> None:
        self._status = SyncStatus.syncing()
        try:
            self.rebuild_index()
        except WriteFailed as e:
            self._status = SyncStatus.error(str(e))
            raise
        if self.hook is not None:
            with self._publishing():
                self.hook.sync_all(self.folder)
        self._status = SyncStatus.synced()
        logger.info("sync_all_done", extra={"folder": str(self.folder)})

    def load_notes(self) -> list[Note]:
        notes: list[Note] = []
        for path in sorted(self.notes_dir.glob("*.json")):
            try:
                record = NoteRecord.model_validate_json(path.read_bytes())
            except (OSError, ValidationError) as e:
                logger.warning("note_file_skipped", extra={"path": str(path), "error": str(e)})
                continue
            notes.append(record.to_note())
        return notes

    def rebuild_index(self) -> list[NoteIndexEntry]:
        with self._index_lock:
            entries = index_entries(self.load_notes())
            try:
                atomic_write_json(self.index_path, index_payload(entries))
            except OSError as e:
                raise WriteFailed(self.index_path, e) from e
        logger.debug("index_rebuilt", extra={"count": len(entries)})
        return entries

    def export_viewer(self, generator: WebViewerGenerator, output_path: Path | None = None) -> tuple[Path, int]:
        """Write the standalone viewer and announce it with a `generate_html` event."""
        target = output_path or self.folder / VIEWER_FILE
        notes = self.load_notes()
        try:
            atomic_write_text(target, generator.standalone_html(notes))
        except OSError as e:
            raise WriteFailed(target, e) from e
        self.rebuild_index()
        if self.hook is not None:
            with self._publishing():
                self.hook.generate_html(target, self.index_path)
        logger.info("viewer_exported", extra={"path": str(target), "count": len(notes)})
        return target, len(notes)

    def verify_access(self) -> bool:
        return self.folder.is_dir() and os.access(self.folder, os.W_OK)
