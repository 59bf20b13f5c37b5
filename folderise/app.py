"""Render and serve folder pages.

parse(): stat -> list -> categorise -> load template -> render sections ->
compose -> write cache. serve(): cached page or a fresh parse(), then plugin
tokens are resolved on whatever HTML came back.
"""

from __future__ import annotations

import html
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from folderise.cache import CacheMiss, CacheStore
from folderise.categorize import RenderContext, categorise_files
from folderise.config import Settings
from folderise.mimetype import MimetypeOracle
from folderise.plugins import Plugin, load_plugins, resolve_plugin_tokens, run_middlemen
from folderise.sections import render_content, render_downloads, render_images, render_navigation
from folderise.site_paths import (
    PathValidationError,
    has_hidden_segment,
    normalize_request_path,
    resolve_in_folder,
)
from folderise.tasks import gather
from folderise.template import compose, load_template
from folderise.watcher import FolderWatcher, WatchEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServeResult:
    status: int
    body: str


class FolderiseApp:
    def __init__(
        self,
        settings: Settings,
        *,
        oracle: MimetypeOracle | None = None,
        plugins: Mapping[str, Plugin] | None = None,
    ):
        self.settings = settings
        self.oracle = oracle or MimetypeOracle()
        self.plugins = plugins if plugins is not None else load_plugins(settings.plugins)
        self.cache = CacheStore(settings.folder)
        self.watcher: FolderWatcher | None = None

    @property
    def folder(self) -> Path:
        return self.settings.folder

    def start(self) -> None:
        if self.settings.refresh:
            logger.info("Restarted so clearing cached files.")
            self.cache.invalidate_recursive(self.folder)
        if self.settings.watch and self.watcher is None:
            self.watcher = FolderWatcher(self.folder, self.handle_event)
            self.watcher.start()

    def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    def handle_event(self, event: WatchEvent) -> None:
        self.cache.remove_cache_at(event.path, event.describe())

    def parse(self, request_path: str) -> str:
        """Render the page for one folder and cache it. Plugin tokens stay raw."""
        timeout = self.settings.timeout
        ctx = RenderContext(
            root_folder=self.folder,
            request_path=normalize_request_path(request_path),
            title=self.settings.title,
        )
        directory = ctx.absolute_dir

        st = directory.stat()
        if not stat.S_ISDIR(st.st_mode):
            raise NotADirectoryError("URL is not a Folder")

        categorise_files(ctx, os.listdir(directory), self.oracle, timeout=timeout)
        ctx.html = load_template(self.settings.template)

        navigation, content, images, downloads = gather(
            [
                lambda: render_navigation(ctx, timeout=timeout),
                lambda: render_content(ctx, timeout=timeout),
                lambda: render_images(ctx),
                lambda: render_downloads(ctx),
            ],
            timeout=timeout,
            thread_name_prefix="folderise-section",
        )
        ctx.html = compose(
            ctx.html,
            {
                "title": html.escape(ctx.title),
                "navigation": navigation,
                "content": content,
                "images": images,
                "downloads": downloads,
            },
        )
        self.cache.write(directory, ctx.html)
        return ctx.html

    def serve(self, request_path: str) -> ServeResult:
        try:
            normalized = normalize_request_path(request_path)
            directory = resolve_in_folder(self.folder, normalized)
        except PathValidationError as exc:
            return ServeResult(400, str(exc))
        if has_hidden_segment(normalized):
            return ServeResult(404, "Not found")

        try:
            page = self.cache.read(directory)
        except CacheMiss:
            logger.info("Parsing %s", normalized)
            try:
                page = self.parse(normalized)
            except (FileNotFoundError, NotADirectoryError) as exc:
                return ServeResult(404, str(exc))
            except Exception as exc:
                logger.exception("Render failed for %s", normalized)
                return ServeResult(500, str(exc))

        return ServeResult(200, resolve_plugin_tokens(page, self.plugins, timeout=self.settings.timeout))

    def middleman(self, request: Any, response: Any) -> None:
        run_middlemen(self.plugins, request, response, timeout=self.settings.timeout)
