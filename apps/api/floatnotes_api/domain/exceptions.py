from __future__ import annotations

from pathlib import Path


class PathError(ValueError):
    pass


class SyncError(Exception):
    """Base class for everything the sync/publish pipeline raises."""


class FolderNotConfigured(SyncError):
    def __init__(self) -> None:
        super().__init__("Sync folder is not configured")


class FolderNotAccessible(SyncError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Cannot access sync folder: {path}")


class WriteFailed(SyncError):
    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write to {path.name}: {cause}")


class DeleteFailed(SyncError):
    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to delete {path.name}: {cause}")


class HookFailed(SyncError):
    """The publish hook exited nonzero, could not be spawned, or stalled."""

    def __init__(self, detail: str, *, exit_code: int | None = None) -> None:
        self.detail = detail
        self.exit_code = exit_code
        super().__init__(f"Publish hook failed: {detail}")


class HookTimeout(HookFailed):
    def __init__(self, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        super().__init__(f"timed out after {timeout_s:g}s")


class PreviewStartFailed(RuntimeError):
    def __init__(self, host: str, port: int, cause: BaseException) -> None:
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(f"Failed to start preview server on {host}:{port}: {cause}")
