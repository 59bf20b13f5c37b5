#!/usr/bin/env python3
"""Local HTTP server for a folderise site.

Features:
- Serves plain files straight from the site folder
- Runs plugin middleman hooks before every page
- Renders (or reads from cache) one HTML page per folder
"""

from __future__ import annotations

import argparse
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Sequence
from urllib.parse import urlparse

from folderise.app import FolderiseApp
from folderise.config import ConfigError, load_settings_file, parse_options, resolve_options, setup_logging
from folderise.site_paths import PathValidationError, has_hidden_segment, normalize_request_path, resolve_in_folder

logger = logging.getLogger(__name__)

BASE_HEADERS = {
    "Cache-Control": "no-store",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
}


@dataclass
class PageResponse:
    """Headers plugins may add from their middleman hook."""

    headers: dict[str, str] = field(default_factory=dict)


def _send_bytes(
    handler: BaseHTTPRequestHandler,
    status: int,
    data: bytes,
    content_type: str,
    extra_headers: dict[str, str] | None = None,
) -> None:
    handler.send_response(status)
    handler.send_header("Content-Type", content_type)
    handler.send_header("Content-Length", str(len(data)))
    for key, value in {**BASE_HEADERS, **(extra_headers or {})}.items():
        handler.send_header(key, value)
    handler.end_headers()
    if handler.command != "HEAD":
        handler.wfile.write(data)


def _send_text(handler: BaseHTTPRequestHandler, status: int, text: str, extra_headers: dict[str, str] | None = None) -> None:
    _send_bytes(handler, status, text.encode("utf-8"), "text/plain; charset=utf-8", extra_headers)


def _send_file(handler: BaseHTTPRequestHandler, path: Path) -> None:
    data = path.read_bytes()
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    _send_bytes(handler, HTTPStatus.OK, data, content_type)


def resolve_static_file(app: FolderiseApp, request_path: str) -> Path | None:
    """Existing, visible file under the site folder, or None."""
    try:
        normalized = normalize_request_path(request_path)
        target = resolve_in_folder(app.folder, normalized)
    except PathValidationError:
        return None
    if has_hidden_segment(normalized):
        return None
    return target if target.is_file() else None


def make_handler(app: FolderiseApp):
    class FolderiseHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # type: ignore[override]
            path = urlparse(self.path).path

            static_file = resolve_static_file(app, path)
            if static_file is not None:
                try:
                    _send_file(self, static_file)
                except OSError as exc:
                    _send_text(self, HTTPStatus.NOT_FOUND, str(exc))
                return

            response = PageResponse()
            app.middleman(self, response)

            result = app.serve(path)
            if result.status == HTTPStatus.OK:
                _send_bytes(
                    self,
                    result.status,
                    result.body.encode("utf-8"),
                    "text/html; charset=utf-8",
                    response.headers,
                )
            else:
                _send_text(self, result.status, result.body, response.headers)

        def do_HEAD(self) -> None:  # type: ignore[override]
            self.do_GET()

        def log_message(self, format: str, *args: object) -> None:  # type: ignore[override]
            logger.debug("%s - %s", self.address_string(), format % args)

    return FolderiseHandler


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve a folder tree as a browsable HTML site.")
    parser.add_argument("--settings", type=Path, help="JSON settings file (folder, title, plugins, ...)")
    parser.add_argument("--folder", help="Root folder of the site")
    parser.add_argument("--title", help="Site title")
    parser.add_argument("--host")
    parser.add_argument("--port", type=int)
    parser.add_argument("--template", help="Alternative page template")
    parser.add_argument("--timeout", type=float, help="Seconds before a render or plugin call gives up")
    parser.add_argument("--no-watch", action="store_true", help="Do not watch the folder for changes")
    parser.add_argument("--no-refresh", action="store_true", help="Keep cached pages from a previous run")
    parser.add_argument("--log-level", default=os.getenv("FOLDERISE_LOG_LEVEL", "INFO"))
    return parser.parse_args(argv)


def build_app(args: argparse.Namespace) -> FolderiseApp:
    file_options = load_settings_file(args.settings) if args.settings else {}
    cli_options = {
        "folder": args.folder,
        "title": args.title,
        "host": args.host,
        "port": args.port,
        "template": args.template,
        "timeout": args.timeout,
        "watch": False if args.no_watch else None,
        "refresh": False if args.no_refresh else None,
    }
    settings = parse_options(resolve_options(file_options, cli_options=cli_options))
    return FolderiseApp(settings)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        app = build_app(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    app.start()
    handler_cls = make_handler(app)
    settings = app.settings
    try:
        with ThreadingHTTPServer((settings.host, settings.port), handler_cls) as server:
            logger.info("Serving %s", settings.folder)
            logger.info("URL: http://%s:%s", settings.host, server.server_address[1])
            server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Stopping...")
    finally:
        app.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
