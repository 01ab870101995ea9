from __future__ import annotations

import stat
from pathlib import Path

import pytest

from floatnotes_api.dependencies import clear_caches


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("FLOATNOTES_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("PREVIEW_PORT", "0")
    monkeypatch.delenv("API_AUTH_MODE", raising=False)
    monkeypatch.delenv("API_AUTH_TOKEN", raising=False)
    clear_caches()
    yield tmp_path / "home"
    clear_caches()


@pytest.fixture
def make_hook(tmp_path):
    def _make(body: str, name: str = "hook.sh", executable: bool = True) -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        if executable:
            path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def recording_hook(tmp_path, make_hook):
    """Hook that stores each event it receives under `events/` and prints a URL for images."""
    events = tmp_path / "events"
    events.mkdir()
    script = make_hook(
        f'payload=$(cat)\n'
        f'printf "%s" "$payload" > "$(mktemp "{events}/event.XXXXXX")"\n'
        'case "$payload" in\n'
        '  *\'"image_uploaded"\'*) echo "https://cdn.example.com/images/pic.png" ;;\n'
        'esac\n'
        "exit 0\n",
        name="recording_hook.sh",
    )
    return script, events
