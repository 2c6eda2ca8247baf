from __future__ import annotations

import json
import mimetypes
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, unquote, urlparse

from . import config
from .SwimProfile import SwimmerNotFound, SwimmerRecord, lookupSwimmer


def make_server(
    *,
    host: str,
    port: int,
    static_dir: Path,
    lookup: Callable[[str], SwimmerRecord] = lookupSwimmer,
) -> ThreadingHTTPServer:
    """Build the HTTP server. Each request runs in its own thread with its own browser."""

    class Handler(_Handler):
        _static_dir = Path(static_dir)
        _lookup = staticmethod(lookup)

    return ThreadingHTTPServer((host, int(port)), Handler)


def run_server(server: ThreadingHTTPServer) -> None:
    host, port = server.server_address[:2]
    print(f"[swimmer_api] Server is running on http://{host}:{port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("[swimmer_api] Shutting down.")
    finally:
        server.server_close()


class _Handler(BaseHTTPRequestHandler):
    _static_dir: Path
    _lookup: Callable[[str], SwimmerRecord]

    def log_message(self, fmt: str, *args: Any) -> None:
        print(f"[swimmer_api] {self.address_string()} {fmt % args}")

    def do_GET(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)

        try:
            if parsed.path.startswith("/api/"):
                payload = self._handle_api(parsed.path, parse_qs(parsed.query))
                return self._send_json(HTTPStatus.OK, payload)
            path = unquote(parsed.path)
            return self._send_file("index.html" if path in {"/", "/index.html"} else path)
        except _RequestFailed as exc:
            return self._send_json(exc.status, {"error": str(exc)})

    def _handle_api(self, path: str, qs: dict[str, list[str]]) -> dict[str, Any]:
        if path == "/api/get-swimmer":
            return self._get_swimmer(qs)
        raise _RequestFailed(HTTPStatus.NOT_FOUND, "Not found")

    def _get_swimmer(self, qs: dict[str, list[str]]) -> dict[str, Any]:
        name = qs.get("name", [""])[0].strip()
        if not name:
            raise _RequestFailed(HTTPStatus.BAD_REQUEST, config.MSG_NAME_REQUIRED)

        try:
            record = self._lookup(name)
        except SwimmerNotFound as exc:
            print(f"[swimmer_api] Lookup failed: {exc}")
            raise _RequestFailed(HTTPStatus.NOT_FOUND, config.MSG_NOT_FOUND) from exc
        except Exception as exc:  # noqa: BLE001
            print(f"[swimmer_api] Lookup failed: {exc}")
            raise _RequestFailed(HTTPStatus.INTERNAL_SERVER_ERROR, config.MSG_FETCH_FAILED) from exc
        return record.to_dict()

    def _send_file(self, rel_path: str) -> None:
        root = self._static_dir.resolve()
        parts = [p for p in rel_path.replace("\\", "/").split("/") if p]
        if ".." in parts:
            raise _RequestFailed(HTTPStatus.BAD_REQUEST, "Invalid path")
        path = root.joinpath(*parts).resolve()
        if root not in path.parents:
            raise _RequestFailed(HTTPStatus.BAD_REQUEST, "Invalid path")
        if not path.is_file():
            raise _RequestFailed(HTTPStatus.NOT_FOUND, "Not found")
        self._send(HTTPStatus.OK, path.read_bytes(), _content_type(path.name))

    def _send_json(self, status: int, payload: Any) -> None:
        # Compact separators: same bytes as the Express server this replaces.
        body = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        self._send(status, body, "application/json; charset=utf-8")

    def _send(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class _RequestFailed(Exception):
    """Ends a request with `status` and a JSON {"error": message} body."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


def _content_type(filename: str) -> str:
    ctype, _ = mimetypes.guess_type(filename)
    if ctype is None:
        return "application/octet-stream"
    if ctype.startswith("text/") or ctype in {"application/javascript", "application/json"}:
        return f"{ctype}; charset=utf-8"
    return ctype


def serve(*, host: Optional[str] = None, port: Optional[int] = None, static_dir: Optional[Path] = None) -> None:
    server = make_server(
        host=host or config.default_host(),
        port=config.default_port() if port is None else port,
        static_dir=static_dir or config.default_static_dir(),
    )
    run_server(server)
