from __future__ import annotations

import hashlib

from floatnotes_api.images import ImageContext, ImageStore, hash_file, image_hash, resolve_image_url
from floatnotes_api.sync.locations import detect_locations, display_path, ensure_sync_folder, recommended_location


def test_image_hash_is_short_sha256(tmp_path) -> None:
    data = b"some image bytes"
    assert image_hash(data) == hashlib.sha256(data).hexdigest()[:16]
    path = tmp_path / "a.png"
    path.write_bytes(data)
    assert hash_file(path) == image_hash(data)


def test_store_is_content_addressed(tmp_path) -> None:
    store = ImageStore(tmp_path / "images")
    p1 = store.save(b"pixels", "PNG")
    p2 = store.save(b"pixels", ".png")
    p3 = store.save(b"other", "jpg")

    assert p1 == p2
    assert p1.name == f"{image_hash(b'pixels')}.png"
    assert p3.suffix == ".jpg"
    assert sorted(p.name for p in (tmp_path / "images").iterdir()) == sorted([p1.name, p3.name])


def test_resolve_image_url() -> None:
    assert resolve_image_url("/tmp/x/ab.png", ImageContext.EDITOR) == "file:///tmp/x/ab.png"
    assert resolve_image_url("/tmp/x/ab.png", ImageContext.WEB_VIEWER) == "images/ab.png"
    assert resolve_image_url("/tmp/x/ab.png", ImageContext.WEB_VIEWER, "https://n.example.com/") == "https://n.example.com/images/ab.png"
    assert resolve_image_url("https://cdn.example.com/i/ab.png", ImageContext.WEB_VIEWER) == "images/ab.png"


def test_detects_cloud_folders_in_order(tmp_path) -> None:
    assert detect_locations(tmp_path) == []
    assert recommended_location(tmp_path) is None

    (tmp_path / "Dropbox").mkdir()
    (tmp_path / "Library" / "Mobile Documents" / "com~apple~CloudDocs").mkdir(parents=True)

    found = detect_locations(tmp_path)
    assert [loc.kind for loc in found] == ["icloud", "dropbox"]
    assert found[0].path.name == "FloatingNotes"
    assert found[0].name == "iCloud Drive"
    assert recommended_location(tmp_path).kind == "icloud"


def test_ensure_sync_folder_and_display_path(tmp_path) -> None:
    folder = tmp_path / "Dropbox" / "FloatingNotes"
    ensure_sync_folder(folder)
    assert (folder / "notes").is_dir()
    assert (folder / "images").is_dir()
    assert display_path(folder, tmp_path) == "~/Dropbox/FloatingNotes"
    assert display_path(folder, tmp_path / "elsewhere") == str(folder)
