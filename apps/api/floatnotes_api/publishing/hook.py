from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path

import httpx

from floatnotes_api.config import SyncConfig
from floatnotes_api.domain.exceptions import HookFailed, HookTimeout
from floatnotes_api.publishing.events import (
    GenerateHtml,
    ImageUploaded,
    NoteDeleted,
    NoteUpdated,
    PublishEvent,
    SyncAll,
    encode_event,
)

DEFAULT_TIMEOUT_S = 60.0
FALLBACK_SHELL = "/bin/sh"

logger = logging.getLogger("floatnotes.hook")


def parse_public_url(output: str | None) -> str | None:
    """Public URL from hook output: the last non-empty line, if it is an absolute URL."""
    if not output:
        return None
    lines = [ln.strip() for ln in output.strip().splitlines() if ln.strip()]
    if not lines:
        return None
    candidate = lines[-1]
    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL:
        return None
    if not url.scheme or not url.host:
        return None
    return candidate


class PublishHook:
    """Runs a user-supplied program once per publish event.

    The event is written to the program's stdin as a JSON object and stdin is
    closed. Exit code 0 is success and stdout is returned; anything else raises
    HookFailed carrying stderr. Invocations are independent: two events fired
    close together may run their programs concurrently.
    """

    def __init__(self, script_path: Path, *, base_url: str | None = None, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.script_path = script_path
        self.base_url = base_url
        self.timeout_s = timeout_s

    def _command(self) -> list[str]:
        if self.verify():
            return [str(self.script_path)]
        return [FALLBACK_SHELL, str(self.script_path)]

    def run(self, event: PublishEvent) -> str | None:
        payload = encode_event(event)
        start = time.perf_counter()
        try:
            proc = subprocess.run(
                self._command(),
                input=payload,
                capture_output=True,
                timeout=self.timeout_s,
                close_fds=True,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("hook_timeout", extra={"event": event.type, "timeout_s": self.timeout_s})
            raise HookTimeout(self.timeout_s) from e
        except OSError as e:
            logger.warning("hook_spawn_failed", extra={"event": event.type, "error": str(e)})
            raise HookFailed(str(e)) from e

        dt_ms = (time.perf_counter() - start) * 1000.0
        if proc.returncode != 0:
            detail = proc.stderr.decode("utf-8", errors="replace").strip() or f"exit code {proc.returncode}"
            logger.warning(
                "hook_failed",
                extra={"event": event.type, "exit_code": proc.returncode, "ms": dt_ms},
            )
            raise HookFailed(detail, exit_code=proc.returncode)

        logger.info("hook_ok", extra={"event": event.type, "ms": dt_ms})
        output = proc.stdout.decode("utf-8", errors="replace")
        return output if output.strip() else None

    def note_updated(self, note_id: str, note_path: Path) -> None:
        self.run(NoteUpdated(note_id=note_id, note_path=str(note_path)))

    def note_deleted(self, note_id: str) -> None:
        self.run(NoteDeleted(note_id=note_id))

    def image_uploaded(self, local_path: Path, image_hash: str) -> str | None:
        output = self.run(ImageUploaded(local_path=str(local_path), hash=image_hash))
        return parse_public_url(output)

    def sync_all(self, sync_folder: Path) -> None:
        self.run(SyncAll(sync_folder=str(sync_folder)))

    def generate_html(self, output_path: Path, index_path: Path) -> None:
        self.run(GenerateHtml(output_path=str(output_path), index_path=str(index_path)))

    def verify(self) -> bool:
        return self.script_path.is_file() and os.access(self.script_path, os.X_OK)


def create_publish_hook(config: SyncConfig, *, timeout_s: float = DEFAULT_TIMEOUT_S) -> PublishHook | None:
    if not config.hook_path:
        return None
    return PublishHook(Path(config.hook_path).expanduser(), base_url=config.base_url, timeout_s=timeout_s)
