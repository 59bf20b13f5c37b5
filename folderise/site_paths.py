"""Path helpers shared by the renderer, the cache and the HTTP layer."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from urllib.parse import unquote

CACHE_FILENAME = "_tmp.html"
HIDDEN_PREFIXES = (".", "_")


class PathValidationError(ValueError):
    """Raised when a request path is invalid or unsafe."""


def is_hidden(name: str) -> bool:
    """Entries starting with '.' or '_' never show up anywhere on the site."""
    return name.startswith(HIDDEN_PREFIXES)


def normalize_request_path(request_path: str) -> str:
    """Turn a raw URL path into '/a/b' form and reject traversal.

    The root is always '/'. Percent escapes are decoded.
    """
    value = unquote(request_path or "").replace("\\", "/")
    parts = [part for part in value.split("/") if part and part != "."]
    if ".." in parts:
        raise PathValidationError("Path traversal is not allowed")
    if "\x00" in value:
        raise PathValidationError("Null byte in path")
    return "/" + "/".join(parts)


def request_segments(request_path: str) -> list[str]:
    return [part for part in request_path.split("/") if part]


def has_hidden_segment(request_path: str) -> bool:
    return any(is_hidden(part) for part in request_segments(request_path))


def resolve_in_folder(folder: Path, request_path: str) -> Path:
    """Resolve a request path to an absolute path inside ``folder``."""
    normalized = normalize_request_path(request_path)
    base = Path(folder).resolve()
    try:
        target = (base / normalized.lstrip("/")).resolve()
    except (OSError, ValueError) as exc:
        raise PathValidationError(f"Invalid path: {exc}") from exc
    if target == base or str(target).startswith(str(base) + os.sep):
        return target
    raise PathValidationError("Resolved path escapes the site folder")


def cache_path(directory: Path) -> Path:
    return Path(directory) / CACHE_FILENAME


def url_join(*parts: str) -> str:
    """posixpath.join that always yields an absolute URL path."""
    return posixpath.join("/", *parts)
