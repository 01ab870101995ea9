"""Local preview server for the mirror folder.

A deliberately small HTTP/1.1 origin server meant for localhost only: every
connection carries one GET request and is closed after the response. Each
connection is handled on its own thread.
"""

from __future__ import annotations

import logging
import socketserver
import threading
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from pathlib import Path
from typing import Callable
from urllib.parse import unquote

from floatnotes_api.domain.exceptions import PreviewStartFailed
from floatnotes_api.viewer.generator import WebViewerGenerator

MAX_HEAD_BYTES = 64 * 1024
READ_TIMEOUT_S = 10.0
VIEWER_PATHS = {"/", "/index.html"}

CONTENT_TYPES = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

logger = logging.getLogger("floatnotes.preview")


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes
    content_type: str = "text/plain"
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def text(cls, status: int, message: str, **headers: str) -> Response:
        return cls(status, message.encode("utf-8"), headers=headers)

    def to_bytes(self) -> bytes:
        lines = [
            f"HTTP/1.1 {self.status} {HTTPStatus(self.status).phrase}",
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(self.body)}",
            "Access-Control-Allow-Origin: *",
            "Connection: close",
        ]
        lines.extend(f"{k}: {v}" for k, v in self.headers.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("latin-1") + self.body


class BadRequest(ValueError):
    pass


def parse_request_line(head: bytes) -> tuple[str, str]:
    line = head.split(b"\r\n", 1)[0]
    try:
        text = line.decode("ascii")
    except UnicodeDecodeError as e:
        raise BadRequest("request line is not ASCII") from e
    parts = text.split(" ")
    if len(parts) not in (2, 3):
        raise BadRequest("invalid request line")
    method, target = parts[0], parts[1]
    if not method.isalpha() or not target:
        raise BadRequest("invalid request line")
    if len(parts) == 3 and not parts[2].startswith("HTTP/"):
        raise BadRequest("invalid protocol version")
    return method, target


def request_segments(target: str) -> list[str]:
    """Decoded path segments of a request target; rejects traversal."""
    if not target.startswith("/"):
        raise BadRequest("target must be an absolute path")
    path = unquote(target.split("?", 1)[0].split("#", 1)[0])
    if "\x00" in path:
        raise BadRequest("path contains NUL")
    segments = [s for s in path.replace("\\", "/").split("/") if s not in ("", ".")]
    if ".." in segments:
        raise BadRequest("path traversal not allowed")
    return segments


def handle_request(head: bytes, root: Path, viewer_html: Callable[[], str]) -> Response:
    try:
        method, target = parse_request_line(head)
    except BadRequest as e:
        return Response.text(400, str(e))

    if method != "GET":
        return Response.text(405, "Only GET is supported", Allow="GET")

    try:
        segments = request_segments(target)
    except BadRequest as e:
        return Response.text(400, str(e))

    if "/" + "/".join(segments) in VIEWER_PATHS:
        try:
            page = viewer_html()
        except Exception:
            logger.exception("viewer_render_failed")
            return Response.text(500, "Failed to render viewer")
        return Response(200, page.encode("utf-8"), content_type="text/html")

    try:
        base = root.resolve()
        candidate = base.joinpath(*segments).resolve()
        candidate.relative_to(base)
    except (ValueError, OSError):
        return Response.text(404, "File not found")

    if not candidate.is_file():
        return Response.text(404, f"File not found: /{'/'.join(segments)}")
    try:
        data = candidate.read_bytes()
    except OSError:
        logger.exception("file_read_failed", extra={"path": str(candidate)})
        return Response.text(500, "Failed to read file")
    return Response(200, data, content_type=content_type_for(candidate))


class PreviewRequestHandler(socketserver.BaseRequestHandler):
    server: PreviewTCPServer

    def _read_head(self) -> bytes | None:
        buf = b""
        while b"\r\n\r\n" not in buf:
            if len(buf) > MAX_HEAD_BYTES:
                return None
            chunk = self.request.recv(4096)
            if not chunk:
                break
            buf += chunk
        return buf

    def handle(self) -> None:
        self.request.settimeout(READ_TIMEOUT_S)
        try:
            head = self._read_head()
        except OSError:
            return
        if head == b"":
            return
        if head is None:
            response = Response.text(400, "Request header too large")
        elif b"\r\n\r\n" not in head:
            response = Response.text(400, "Incomplete request")
        else:
            response = handle_request(head, self.server.root, self.server.viewer_html)
        try:
            self.request.sendall(response.to_bytes())
        except OSError:
            return
        logger.debug(
            "preview_request",
            extra={"status": response.status, "line": head.split(b"\r\n", 1)[0][:200].decode("latin-1") if head else ""},
        )


class PreviewTCPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True
    block_on_close = False

    def __init__(self, address: tuple[str, int], root: Path, viewer_html: Callable[[], str]) -> None:
        self.root = root
        self.viewer_html = viewer_html
        super().__init__(address, PreviewRequestHandler)


class PreviewState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class LocalPreviewServer:
    """Serves a folder plus the generated viewer page on localhost.

    `start` binds synchronously; a bind failure (port in use, ...) leaves the
    server stopped, records `last_error` and raises PreviewStartFailed. `stop`
    closes the listener at once; in-flight connections are not drained.
    """

    def __init__(self, viewer: WebViewerGenerator, *, host: str = "127.0.0.1", port: int = 8765) -> None:
        self.viewer = viewer
        self.host = host
        self.port = port
        self.root: Path | None = None
        self.last_error: str | None = None
        self._state = PreviewState.STOPPED
        self._server: PreviewTCPServer | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PreviewState.RUNNING

    @property
    def bound_port(self) -> int | None:
        if self._server is None:
            return None
        return self._server.server_address[1]

    @property
    def url(self) -> str | None:
        if not self.is_running:
            return None
        return f"http://{self.host}:{self.bound_port}"

    def start(self, root: Path) -> None:
        with self._lock:
            if self._state is PreviewState.RUNNING:
                return
            self._state = PreviewState.STARTING
            try:
                server = PreviewTCPServer((self.host, self.port), root, self.viewer.viewer_html)
            except OSError as e:
                self._state = PreviewState.STOPPED
                self.last_error = str(e)
                logger.error("preview_start_failed", extra={"host": self.host, "port": self.port, "error": str(e)})
                raise PreviewStartFailed(self.host, self.port, e) from e

            self.root = root
            self.last_error = None
            self._server = server
            self._thread = threading.Thread(
                target=server.serve_forever,
                kwargs={"poll_interval": 0.2},
                name="floatnotes-preview",
                daemon=True,
            )
            self._thread.start()
            self._state = PreviewState.RUNNING
        logger.info("preview_started", extra={"url": self.url, "root": str(root)})

    def stop(self) -> None:
        with self._lock:
            server, self._server = self._server, None
            thread, self._thread = self._thread, None
            if server is None:
                return
            server.shutdown()
            server.server_close()
            if thread is not None:
                thread.join(timeout=1.0)
            self._state = PreviewState.STOPPED
        logger.info("preview_stopped")
