"""The four page sections: navigation, content, images and downloads.

Each renderer builds a Markdown block and returns it converted to HTML, so an
empty section still goes through the converter and comes back as ''.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from folderise.categorize import RenderContext
from folderise.markdown_utils import escape_markdown, escape_url, make_link, markdown_to_html
from folderise.site_paths import is_hidden, request_segments, url_join
from folderise.tasks import gather

IMAGES_HEADER = "### Images \n"
DOWNLOADS_HEADER = "### Resources \n"


def get_base_folders(root_folder: Path, *, timeout: float | None = None) -> list[str]:
    """Visible top-level folders of the site root, in listing order."""
    names = [name for name in os.listdir(root_folder) if not is_hidden(name)]
    stats = gather(
        [lambda name=name: os.stat(root_folder / name) for name in names],
        timeout=timeout,
        thread_name_prefix="folderise-stat",
    )
    return [name for name, st in zip(names, stats) if stat.S_ISDIR(st.st_mode)]


def _url_for(segments: list[str], name: str | None = None) -> str:
    parts = [escape_url(segment) for segment in segments]
    if name is not None:
        parts.append(escape_url(name))
    return url_join(*parts)


def _strike(name: str) -> str:
    return f"~~{escape_markdown(name)}~~"


def navigation_markdown(ctx: RenderContext, folders: list[str]) -> str:
    breadcrumb = request_segments(ctx.request_path)
    nav = "## | " + (make_link("home", "/") if breadcrumb else _strike("home"))

    for folder in folders:
        nav += " | "
        if breadcrumb and folder == breadcrumb[0]:
            last = len(breadcrumb) - 1
            for i, segment in enumerate(breadcrumb):
                if i > 0:
                    nav += " / "
                if i < last:
                    nav += make_link(escape_markdown(segment), _url_for(breadcrumb[: i + 1]))
                else:
                    nav += _strike(segment)
        else:
            nav += make_link(escape_markdown(folder), _url_for([folder]))
    nav += " | ##"

    if ctx.subfolders and breadcrumb:
        extra = " | ".join(
            make_link(escape_markdown(name), _url_for(breadcrumb, name)) for name in ctx.subfolders
        )
        nav += "\n### extra: " + extra
    return nav


def render_navigation(ctx: RenderContext, *, timeout: float | None = None) -> str:
    folders = get_base_folders(ctx.root_folder, timeout=timeout)
    return markdown_to_html(navigation_markdown(ctx, folders))


def _render_text_file(path: Path) -> str:
    return markdown_to_html(path.read_text(encoding="utf-8", errors="replace"))


def render_content(ctx: RenderContext, *, timeout: float | None = None) -> str:
    directory = ctx.absolute_dir
    renders = gather(
        [lambda name=name: _render_text_file(directory / name) for name in ctx.text_files],
        timeout=timeout,
        thread_name_prefix="folderise-text",
    )
    return " ".join(renders)


def images_markdown(ctx: RenderContext) -> str:
    segments = request_segments(ctx.request_path)
    text = IMAGES_HEADER if ctx.image_files else ""
    for name in ctx.image_files:
        url = _url_for(segments, name)
        text += f"[![{escape_markdown(name)}]({url})]({url})\n"
    return text


def render_images(ctx: RenderContext) -> str:
    return markdown_to_html(images_markdown(ctx))


def downloads_markdown(ctx: RenderContext) -> str:
    segments = request_segments(ctx.request_path)
    text = DOWNLOADS_HEADER if ctx.download_files else ""
    for name in ctx.download_files:
        text += f"+ {make_link(escape_markdown(name), _url_for(segments, name))}\n"
    return text


def render_downloads(ctx: RenderContext) -> str:
    return markdown_to_html(downloads_markdown(ctx))
