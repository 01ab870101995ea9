from __future__ import annotations

import socket

import httpx
import pytest

from floatnotes_api.domain.exceptions import PreviewStartFailed
from floatnotes_api.preview.server import LocalPreviewServer, PreviewState, handle_request, request_segments
from floatnotes_api.viewer.generator import WebViewerGenerator


def _viewer() -> str:
    return "<html>viewer</html>"


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "site"
    (root / "notes").mkdir(parents=True)
    (root / "notes" / "n1.json").write_text('{"id": "n1"}', encoding="utf-8")
    (root / "images").mkdir()
    (root / "images" / "ab.PNG").write_bytes(b"\x89PNG")
    (root / "index.json").write_text("[]", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("outside", encoding="utf-8")
    return root


@pytest.fixture
def server(site):
    srv = LocalPreviewServer(WebViewerGenerator(), host="127.0.0.1", port=0)
    srv.start(site)
    yield srv
    srv.stop()


def _raw(server: LocalPreviewServer, data: bytes) -> bytes:
    with socket.create_connection(("127.0.0.1", server.bound_port), timeout=5) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def test_viewer_served_at_root(server) -> None:
    r = httpx.get(server.url + "/")
    assert r.status_code == 200
    assert r.headers["content-type"] == "text/html"
    assert "fetch('/index.json')" in r.text
    assert r.headers["access-control-allow-origin"] == "*"
    assert r.headers["connection"] == "close"


def test_files_served_with_content_type(server) -> None:
    r = httpx.get(server.url + "/notes/n1.json")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/json"
    assert r.json() == {"id": "n1"}

    r = httpx.get(server.url + "/images/ab.PNG")
    assert r.headers["content-type"] == "image/png"
    assert r.content == b"\x89PNG"
    assert r.headers["content-length"] == "4"


def test_missing_file_is_404(server) -> None:
    r = httpx.get(server.url + "/notes/missing.json")
    assert r.status_code == 404
    assert httpx.get(server.url + "/notes").status_code == 404


def test_only_get_is_allowed(server) -> None:
    response = _raw(server, b"POST /index.json HTTP/1.1\r\nContent-Length: 0\r\n\r\n")
    assert response.startswith(b"HTTP/1.1 405 ")
    assert b"\r\nAllow: GET\r\n" in response


def test_traversal_is_rejected(server) -> None:
    response = _raw(server, b"GET /../secret.txt HTTP/1.1\r\nHost: x\r\n\r\n")
    assert response.startswith(b"HTTP/1.1 400 ")
    assert b"outside" not in response

    response = _raw(server, b"GET /notes/%2e%2e/%2e%2e/secret.txt HTTP/1.1\r\n\r\n")
    assert response.startswith(b"HTTP/1.1 400 ")


def test_malformed_request_line_is_400(server) -> None:
    assert _raw(server, b"garbage\r\n\r\n").startswith(b"HTTP/1.1 400 ")
    assert _raw(server, b"GET / FTP/1.0\r\n\r\n").startswith(b"HTTP/1.1 400 ")


def test_server_lifecycle(site) -> None:
    srv = LocalPreviewServer(WebViewerGenerator(), port=0)
    assert srv.state is PreviewState.STOPPED
    assert srv.url is None

    srv.start(site)
    assert srv.is_running
    assert srv.url == f"http://127.0.0.1:{srv.bound_port}"
    srv.start(site)
    assert srv.is_running

    srv.stop()
    assert srv.state is PreviewState.STOPPED
    assert srv.url is None
    srv.stop()


def test_port_in_use_fails_start(site) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]

        srv = LocalPreviewServer(WebViewerGenerator(), port=port)
        with pytest.raises(PreviewStartFailed):
            srv.start(site)

    assert srv.state is PreviewState.STOPPED
    assert not srv.is_running
    assert srv.last_error


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        ("/", []),
        ("/notes/a.json?x=1#frag", ["notes", "a.json"]),
        ("/images/a%20b.png", ["images", "a b.png"]),
        ("/./notes//a.json", ["notes", "a.json"]),
    ],
)
def test_request_segments(target, expected) -> None:
    assert request_segments(target) == expected


def test_handle_request_without_socket(site) -> None:
    assert handle_request(b"GET /index.html HTTP/1.1\r\n\r\n", site, _viewer).body == b"<html>viewer</html>"
    assert handle_request(b"GET /index.json HTTP/1.1\r\n\r\n", site, _viewer).body == b"[]"
    assert handle_request(b"DELETE / HTTP/1.1\r\n\r\n", site, _viewer).status == 405
    assert handle_request(b"GET relative HTTP/1.1\r\n\r\n", site, _viewer).status == 400
    assert handle_request(b"GET /a%00b HTTP/1.1\r\n\r\n", site, _viewer).status == 400


def test_symlink_escape_is_404(site, tmp_path) -> None:
    (site / "escape.txt").symlink_to(tmp_path / "secret.txt")
    response = handle_request(b"GET /escape.txt HTTP/1.1\r\n\r\n", site, _viewer)
    assert response.status == 404


def test_response_head_format(site) -> None:
    raw = handle_request(b"GET /index.json HTTP/1.1\r\n\r\n", site, _viewer).to_bytes()
    head, body = raw.split(b"\r\n\r\n", 1)
    lines = head.decode("latin-1").split("\r\n")
    assert lines[0] == "HTTP/1.1 200 OK"
    assert "Content-Length: 2" in lines
    assert body == b"[]"
