from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path, PurePosixPath

from floatnotes_api.util import atomic_write_bytes, sha256_hex

HASH_CHARS = 16

logger = logging.getLogger("floatnotes.images")


def image_hash(data: bytes) -> str:
    return sha256_hex(data)[:HASH_CHARS]


def hash_file(path: Path) -> str:
    return image_hash(path.read_bytes())


class ImageContext(str, Enum):
    EDITOR = "editor"
    WEB_VIEWER = "web_viewer"


def resolve_image_url(local_path: str, context: ImageContext, base_url: str | None = None) -> str:
    if context is ImageContext.EDITOR:
        return f"file://{local_path}"
    name = PurePosixPath(local_path.replace("\\", "/")).name
    if base_url:
        return f"{base_url.rstrip('/')}/images/{name}"
    return f"images/{name}"


class ImageStore:
    """Content-addressed image storage on the local device."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def save(self, data: bytes, extension: str = "png") -> Path:
        path = self.directory / f"{image_hash(data)}.{extension.lstrip('.').lower()}"
        if not path.exists():
            atomic_write_bytes(path, data)
            logger.info("image_saved", extra={"path": str(path)})
        return path

