"""Per-directory page cache stored as ``_tmp.html`` next to the content.

A cache file that exists is a valid page; there is no timestamp or hash check.
Invalidation is the only way a page goes stale, and it is best-effort.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from folderise.site_paths import cache_path
from folderise.tasks import settle

logger = logging.getLogger(__name__)


class CacheMiss(Exception):
    """No usable cached page for a directory."""


class CacheStore:
    def __init__(self, root_folder: Path):
        self.root_folder = Path(root_folder)

    def read(self, directory: Path) -> str:
        try:
            return cache_path(directory).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheMiss(str(exc)) from exc

    def write(self, directory: Path, html: str) -> bool:
        target = cache_path(directory)
        try:
            target.write_text(html, encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot write cache file %s: %s", target, exc)
            return False
        return True

    def invalidate_one(self, directory: Path) -> None:
        try:
            cache_path(directory).unlink()
        except OSError:
            pass

    def invalidate_recursive(self, directory: Path | None = None) -> None:
        """Drop the cache of ``directory`` and of every folder below it."""
        directory = Path(directory) if directory is not None else self.root_folder
        folders = [
            Path(dirpath)
            for dirpath, _, _ in os.walk(
                directory,
                onerror=lambda exc: logger.debug("Cannot list %s during invalidation: %s", exc.filename, exc),
            )
        ]
        if not folders:
            self.invalidate_one(directory)
            return

        # One pool for the whole tree; depth does not add threads.
        outcomes = settle(
            [lambda folder=folder: self.invalidate_one(folder) for folder in folders],
            thread_name_prefix="folderise-walk",
        )
        for folder, outcome in zip(folders, outcomes):
            if not outcome.ok:
                logger.warning("Invalidation failed under %s: %s", folder, outcome.error)

    def remove_cache_at(self, changed_path: str | os.PathLike[str], reason: str | None = None) -> None:
        """Apply the invalidation policy for one changed path.

        A direct child of the root changes every page's navigation, so the
        whole tree is dropped. Anything deeper only drops the page of the
        directory that contains it.
        """
        if reason:
            logger.info(reason)
        changed = Path(changed_path)
        base = changed.parent
        item = os.path.relpath(changed, self.root_folder)
        parent = os.path.dirname(item)
        if parent in ("", "."):
            logger.info("Recursively removing all cached pages")
            self.invalidate_recursive(self.root_folder)
        else:
            logger.info("%s changed, removing %s", item, cache_path(base))
            self.invalidate_one(base)
