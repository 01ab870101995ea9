from __future__ import annotations

import json

import pytest

from floatnotes_api.config import SyncConfig
from floatnotes_api.domain.exceptions import HookFailed, HookTimeout
from floatnotes_api.publishing.events import (
    GenerateHtml,
    ImageUploaded,
    NoteDeleted,
    NoteUpdated,
    SyncAll,
    decode_event,
    encode_event,
)
from floatnotes_api.publishing.hook import PublishHook, create_publish_hook, parse_public_url


@pytest.mark.parametrize(
    ("event", "expected"),
    [
        (NoteUpdated(note_id="n1", note_path="/m/notes/n1.json"), {"type": "note_updated", "note_id": "n1", "note_path": "/m/notes/n1.json"}),
        (NoteDeleted(note_id="n1"), {"type": "note_deleted", "note_id": "n1"}),
        (ImageUploaded(local_path="/m/images/ab.png", hash="ab"), {"type": "image_uploaded", "local_path": "/m/images/ab.png", "hash": "ab"}),
        (SyncAll(sync_folder="/m"), {"type": "sync_all", "sync_folder": "/m"}),
        (GenerateHtml(output_path="/m/viewer.html", index_path="/m/index.json"), {"type": "generate_html", "output_path": "/m/viewer.html", "index_path": "/m/index.json"}),
    ],
)
def test_event_wire_format(event, expected) -> None:
    assert json.loads(encode_event(event)) == expected


def test_hook_receives_event_on_stdin(recording_hook) -> None:
    script, events = recording_hook
    hook = PublishHook(script)
    hook.note_updated("n1", events.parent / "notes" / "n1.json")

    files = list(events.iterdir())
    assert len(files) == 1
    event = decode_event(files[0].read_bytes())
    assert isinstance(event, NoteUpdated)
    assert event.note_id == "n1"


def test_image_hook_returns_public_url(recording_hook, tmp_path) -> None:
    script, _events = recording_hook
    hook = PublishHook(script)
    assert hook.image_uploaded(tmp_path / "a.png", "abc") == "https://cdn.example.com/images/pic.png"


def test_blank_output_means_no_override(make_hook, tmp_path) -> None:
    hook = PublishHook(make_hook("cat > /dev/null\necho '   '\n"))
    assert hook.run(NoteDeleted(note_id="n1")) is None
    assert hook.image_uploaded(tmp_path / "a.png", "abc") is None


def test_nonzero_exit_raises_with_stderr(make_hook) -> None:
    hook = PublishHook(make_hook("cat > /dev/null\necho 'upload refused' >&2\nexit 3\n"))
    with pytest.raises(HookFailed) as exc:
        hook.note_deleted("n1")
    assert exc.value.exit_code == 3
    assert "upload refused" in exc.value.detail


def test_stalled_hook_times_out(make_hook) -> None:
    hook = PublishHook(make_hook("exec sleep 5\n"), timeout_s=0.5)
    with pytest.raises(HookTimeout):
        hook.sync_all(hook.script_path.parent)


def test_missing_script_fails_and_does_not_verify(tmp_path) -> None:
    hook = PublishHook(tmp_path / "nope.sh")
    assert hook.verify() is False
    with pytest.raises(HookFailed):
        hook.note_deleted("n1")


def test_non_executable_script_runs_through_shell(make_hook) -> None:
    script = make_hook("cat > /dev/null\necho ok\n", executable=False)
    hook = PublishHook(script)
    assert hook.verify() is False
    assert hook.run(NoteDeleted(note_id="n1")).strip() == "ok"


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("https://cdn.example.com/a.png\n", "https://cdn.example.com/a.png"),
        ("uploading...\ndone\nhttps://cdn.example.com/a.png\n", "https://cdn.example.com/a.png"),
        ("s3://bucket/a.png", "s3://bucket/a.png"),
        ("not a url", None),
        ("/relative/path.png", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_public_url(output, expected) -> None:
    assert parse_public_url(output) == expected


def test_factory_returns_none_without_hook_path(tmp_path) -> None:
    assert create_publish_hook(SyncConfig()) is None
    hook = create_publish_hook(SyncConfig(hook_path=str(tmp_path / "h.sh"), base_url="https://notes.example.com"), timeout_s=5)
    assert hook is not None
    assert hook.base_url == "https://notes.example.com"
    assert hook.timeout_s == 5
