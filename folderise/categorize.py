"""Per-directory render context and file classification."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from folderise.mimetype import MimetypeOracle
from folderise.site_paths import is_hidden
from folderise.tasks import settle

logger = logging.getLogger(__name__)


class CategorizationError(Exception):
    """The mimetype oracle failed for one directory entry."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Could not categorise {name}: {cause}")
        self.name = name
        self.cause = cause


@dataclass
class RenderContext:
    root_folder: Path
    request_path: str
    title: str
    html: str = ""
    text_files: list[str] = field(default_factory=list)
    subfolders: list[str] = field(default_factory=list)
    image_files: list[str] = field(default_factory=list)
    download_files: list[str] = field(default_factory=list)
    warnings: list[CategorizationError] = field(default_factory=list)

    @property
    def absolute_dir(self) -> Path:
        return self.root_folder / self.request_path.lstrip("/")


def is_directory(mimetype: str) -> bool:
    return "directory" in mimetype


def is_image(mimetype: str) -> bool:
    return mimetype.startswith("image/")


def is_download(mimetype: str) -> bool:
    return mimetype.startswith("application/")


def is_markdown(mimetype: str, name: str) -> bool:
    return os.path.splitext(name)[1] == ".md" and mimetype == "text/plain"


def categorise_file(ctx: RenderContext, name: str, mimetype: str) -> None:
    if is_directory(mimetype):
        ctx.subfolders.append(name)
    elif is_image(mimetype):
        ctx.image_files.append(name)
    elif is_download(mimetype):
        ctx.download_files.append(name)
    elif is_markdown(mimetype, name):
        ctx.text_files.append(name)


def categorise_files(
    ctx: RenderContext,
    names: Iterable[str],
    oracle: MimetypeOracle,
    *,
    timeout: float | None = None,
) -> RenderContext:
    """Fill the four category lists of ``ctx`` from a directory listing.

    Every visible entry is looked up concurrently. An entry whose lookup fails
    is left out and recorded in ``ctx.warnings``; the rest are still
    classified, in listing order.
    """
    visible = [name for name in names if not is_hidden(name)]
    directory = ctx.absolute_dir
    outcomes = settle(
        [lambda name=name: oracle.detect(directory / name) for name in visible],
        timeout=timeout,
        thread_name_prefix="folderise-mime",
    )

    for name, outcome in zip(visible, outcomes):
        if outcome.ok:
            categorise_file(ctx, name, outcome.value)
            continue
        warning = CategorizationError(name, outcome.error)
        ctx.warnings.append(warning)
        logger.warning("%s (in %s)", warning, ctx.request_path)
    return ctx
