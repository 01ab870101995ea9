from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from floatnotes_api.domain.exceptions import FolderNotAccessible

APP_FOLDER = "FloatingNotes"
NOTES_DIR = "notes"
IMAGES_DIR = "images"
ICLOUD_DRIVE = Path("Library/Mobile Documents/com~apple~CloudDocs")
DROPBOX = Path("Dropbox")

LocationKind = Literal["icloud", "dropbox", "custom"]

_NAMES = {"icloud": "iCloud Drive", "dropbox": "Dropbox", "custom": "Custom Folder"}
_DESCRIPTIONS = {
    "icloud": "Syncs automatically across all your Apple devices",
    "dropbox": "Syncs to Dropbox-connected devices",
    "custom": "Choose any folder (can still be cloud-synced)",
}


@dataclass(frozen=True)
class CloudLocation:
    kind: LocationKind
    path: Path

    @property
    def name(self) -> str:
        return _NAMES[self.kind]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.kind]


def detect_locations(home: Path | None = None) -> list[CloudLocation]:
    """Cloud-synced folders found under the home directory, best first."""
    home = home or Path.home()
    found: list[CloudLocation] = []
    if (home / ICLOUD_DRIVE).is_dir():
        found.append(CloudLocation("icloud", home / ICLOUD_DRIVE / APP_FOLDER))
    if (home / DROPBOX).is_dir():
        found.append(CloudLocation("dropbox", home / DROPBOX / APP_FOLDER))
    return found


def recommended_location(home: Path | None = None) -> CloudLocation | None:
    found = detect_locations(home)
    return found[0] if found else None


def ensure_sync_folder(path: Path) -> None:
    try:
        (path / NOTES_DIR).mkdir(parents=True, exist_ok=True)
        (path / IMAGES_DIR).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FolderNotAccessible(path) from e


def display_path(path: Path, home: Path | None = None) -> str:
    home = home or Path.home()
    try:
        return "~/" + path.relative_to(home).as_posix()
    except ValueError:
        return str(path)
