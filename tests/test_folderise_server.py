from __future__ import annotations

import http.client
import json
import threading
from http.server import ThreadingHTTPServer
from pathlib import Path

import pytest

pytest.importorskip("markdown")
bs4 = pytest.importorskip("bs4")

from folderise import server
from folderise.app import FolderiseApp
from folderise.site_paths import CACHE_FILENAME


class HeaderPlugin:
    def execute(self) -> str:
        return "from-plugin"

    def middleman(self, request, response):
        response.headers["X-Test-Plugin"] = request.path


def _start_server(app: FolderiseApp) -> tuple[ThreadingHTTPServer, int]:
    handler_cls = server.make_handler(app)
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), handler_cls)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    return httpd, httpd.server_address[1]


def _get(port: int, path: str) -> tuple[int, str, dict[str, str]]:
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        res = conn.getresponse()
        body = res.read().decode("utf-8", errors="ignore")
        headers = {k.lower(): v for k, v in res.getheaders()}
        return res.status, body, headers
    finally:
        conn.close()


@pytest.fixture
def running(site: Path, make_settings):
    app = FolderiseApp(make_settings(site), plugins={"test": HeaderPlugin()})
    httpd, port = _start_server(app)
    try:
        yield app, port
    finally:
        httpd.shutdown()
        httpd.server_close()


def test_folder_page_is_rendered_with_navigation(running, site: Path):
    _, port = running

    status, body, headers = _get(port, "/a/b")

    assert status == 200
    assert headers["content-type"].startswith("text/html")
    assert headers["cache-control"] == "no-store"
    soup = bs4.BeautifulSoup(body, "html.parser")
    nav = soup.find("nav")
    links = {a.get_text(): a["href"] for a in nav.find_all("a")}
    assert links["home"] == "/"
    assert links["a"] == "/a"
    assert links["c"] == "/a/b/c"
    assert [d.get_text() for d in nav.find_all("del")] == ["b"]
    assert (site / "a" / "b" / CACHE_FILENAME).exists()


def test_static_files_are_served_raw(running, site: Path):
    _, port = running

    status, body, headers = _get(port, "/a/notes.md")
    assert status == 200
    assert body == "Some *notes*"

    status, _, headers = _get(port, "/a/manual.pdf")
    assert status == 200
    assert headers["content-type"] == "application/pdf"


def test_hidden_files_and_cache_are_not_served(running, site: Path):
    _, port = running
    _get(port, "/a")
    assert (site / "a" / CACHE_FILENAME).exists()

    for path in ("/a/_tmp.html", "/.hidden", "/_draft.md", "/_private"):
        status, _, _ = _get(port, path)
        assert status == 404, path


def test_middleman_and_tokens(running, site: Path):
    _, port = running
    (site / "x" / "page.md").write_text("Plugin says {{@test}}", encoding="utf-8")

    status, body, headers = _get(port, "/x")

    assert status == 200
    assert "Plugin says from-plugin" in body
    assert headers["x-test-plugin"] == "/x"


def test_missing_folder_returns_error_body(running):
    _, port = running

    status, body, headers = _get(port, "/does/not/exist")

    assert status == 404
    assert headers["content-type"].startswith("text/plain")
    assert body


def test_null_byte_path_is_rejected(running):
    _, port = running

    status, body, _ = _get(port, "/%00")

    assert status == 400
    assert "Null byte" in body


def test_build_app_merges_settings_file_and_cli(tmp_path: Path, site: Path, monkeypatch):
    monkeypatch.delenv("FOLDERISE_FOLDER", raising=False)
    monkeypatch.delenv("FOLDERISE_PORT", raising=False)
    monkeypatch.delenv("FOLDERISE_HOST", raising=False)
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(
        json.dumps({"folder": str(site), "title": "From file", "port": 9001, "plugins": []}),
        encoding="utf-8",
    )

    args = server.parse_args(["--settings", str(settings_file), "--title", "From CLI", "--no-watch"])
    app = server.build_app(args)

    assert app.settings.folder == site.resolve()
    assert app.settings.title == "From CLI"
    assert app.settings.port == 9001
    assert app.settings.watch is False
    assert app.settings.refresh is True


def test_main_without_folder_fails(monkeypatch):
    monkeypatch.delenv("FOLDERISE_FOLDER", raising=False)
    assert server.main(["--log-level", "ERROR"]) == 2
