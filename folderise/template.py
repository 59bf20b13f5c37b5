"""Page skeleton loading and placeholder substitution."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Mapping

DEFAULT_TEMPLATE = Path(__file__).resolve().parent / "template.html"
SECTIONS = ("title", "navigation", "content", "images", "downloads")


class TemplateLoadError(Exception):
    """The page skeleton could not be read."""


def load_template(path: Path | None = None) -> str:
    """Read the skeleton from disk. Called once per render, never cached."""
    template_path = Path(path) if path else DEFAULT_TEMPLATE
    try:
        return template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateLoadError(f"Could not load template {template_path}: {exc}") from exc


def replace_template(html: str, section: str, chunk: str) -> str:
    pattern = re.compile(r"\{\{" + re.escape(section) + r"\}\}")
    return pattern.sub(lambda _match: chunk, html)


def compose(template: str, chunks: Mapping[str, str]) -> str:
    html = template
    for section in SECTIONS:
        html = replace_template(html, section, chunks.get(section, ""))
    return html
